"""Obtain temporary AWS role credentials through an MFA bastion session"""

__version__ = '0.1.0'
