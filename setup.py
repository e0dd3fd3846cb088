"""assume-role setup"""

from assumerole import __version__
from setuptools import setup, find_packages
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))
with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='assume-role',
    version=__version__,
    description='Assume AWS IAM roles through an MFA protected bastion session',
    long_description=long_description,
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],
    keywords='aws sts assume-role mfa',
    packages=find_packages(exclude=['tests']),
    python_requires='>=3.6',
    install_requires=[
        'boto3',
        'docopt',
        'PyYAML',
        'cerberus',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'assume-role=assumerole.cli:main',
        ],
    },

)
