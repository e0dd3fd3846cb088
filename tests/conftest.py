"""Pytest configuration and fixtures for test isolation."""

import io
import json
import logging
import os

import pytest

from assumerole.config import Config
from assumerole.errors import RoleAssumptionFailed
from assumerole.session import Credentials


ACCOUNT_ID = '123456789012'
MFA_SERIAL = 'arn:aws:iam::111111111111:mfa/jdoe'

AWS_ENV_VARS = [
    'AWS_ACCESS_KEY_ID',
    'AWS_SECRET_ACCESS_KEY',
    'AWS_SESSION_TOKEN',
    'AWS_SECURITY_TOKEN',
    'AWS_REGION',
    'AWS_DEFAULT_REGION',
    'AWS_PROFILE',
    'AWS_ASSUME_ROLE_AUTH_SCHEME',
    'AWS_NO_BASTION',
    'AWS_PROFILE_ASSUME_ROLE',
    'AWS_ROLE_SESSION_TIMEOUT',
    'AWS_SESSION_TIMEOUT',
    'AWS_MFA_USERNAME',
    'AWS_MFA_SERIAL',
    'AWS_SESSION_ACCESS_KEY_ID',
    'AWS_SESSION_SECRET_ACCESS_KEY',
    'AWS_SESSION_SESSION_TOKEN',
    'AWS_SESSION_SECURITY_TOKEN',
    'AWS_SESSION_START',
    'AWS_ROLE_SESSION_START',
    'AWS_ACCOUNT_ID',
    'AWS_ACCOUNT_NAME',
    'AWS_ACCOUNT_ROLE',
    'AWS_STATIC_ACCESS_KEY_ID',
    'AWS_STATIC_SECRET_ACCESS_KEY',
    'ACCOUNTS_FILE',
    'ASSUME_ROLE_CONFIG',
    'ASSUME_ROLE_DEBUG',
]


@pytest.fixture(scope="function", autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Keep the developer's AWS settings and config files out of the tests."""
    for var in AWS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('HOME', str(tmp_path))
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def log():
    return logging.getLogger('assumerole.tests')


@pytest.fixture
def accounts_file(tmp_path):
    path = tmp_path / 'accounts'
    path.write_text(json.dumps({
        'production': ACCOUNT_ID,
        'staging': 210987654321,
        'broken': {'id': ACCOUNT_ID},
    }))
    return str(path)


@pytest.fixture
def config(accounts_file):
    return Config(accounts_file=accounts_file)


def make_prompter(answers='', interactive=True):
    from assumerole.accounts import Prompter
    return Prompter(interactive=interactive, stdin=io.StringIO(answers),
            stderr=io.StringIO())


@pytest.fixture
def quiet_prompter():
    """A prompter that never asks"""
    return make_prompter(interactive=False)


SESSION_CREDENTIALS = Credentials('ASIASESSION', 'session-secret', 'session-token')
ROLE_CREDENTIALS = Credentials('ASIAROLE', 'role-secret', 'role-token')


class FakeProvider(object):
    """Stands in for CredentialProvider and records every call"""

    def __init__(self, region=None, serial=MFA_SERIAL, fail_assume=False,
            session_error=None, lookup_error=None):
        self.region = region
        self.serial = serial
        self.fail_assume = fail_assume
        self.session_error = session_error
        self.lookup_error = lookup_error
        self.calls = []

    def names(self):
        return [call[0] for call in self.calls]

    def profile_region(self):
        return self.region

    def lookup_mfa_serial(self, user_name=None):
        self.calls.append(('lookup_mfa_serial', dict(user_name=user_name)))
        if self.lookup_error:
            raise self.lookup_error
        return self.serial

    def get_session_token(self, serial, token, duration):
        self.calls.append(('get_session_token',
                dict(serial=serial, token=token, duration=duration)))
        if self.session_error:
            raise self.session_error
        return SESSION_CREDENTIALS

    def assume_role(self, role_arn, session_name, duration, region=None,
            credentials=None, external_id=None, serial=None, token=None):
        self.calls.append(('assume_role', dict(
            role_arn=role_arn,
            session_name=session_name,
            duration=duration,
            region=region,
            credentials=credentials,
            external_id=external_id,
            serial=serial,
            token=token,
        )))
        if self.fail_assume:
            raise RoleAssumptionFailed('AccessDenied')
        return ROLE_CREDENTIALS


@pytest.fixture
def provider():
    return FakeProvider()
