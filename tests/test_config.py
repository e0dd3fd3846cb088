"""Tests for layered configuration loading."""

import os

import pytest

from assumerole.config import DEFAULTS, Config, load_config
from assumerole.errors import ConfigError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(
        "profile: corp\n"
        "role_session_timeout: 7200\n"
        "default_region: eu-central-1\n"
        "mfa_username: jdoe\n"
    )
    return str(path)


def test_defaults(log):
    config = load_config(log, {}, {})

    assert config.auth_scheme == 'bastion'
    assert config.bastion
    assert config.profile == 'default'
    assert config.session_timeout == 43200
    assert config.role_session_timeout == 3600
    assert config.default_role == 'read'
    assert config.default_region == 'us-east-1'
    assert config.accounts_file == os.path.expanduser('~/.aws/accounts')
    assert config.state_file is None
    assert config.debug is False


def test_config_file(log, config_file):
    config = load_config(log, {'--config': config_file}, {})

    assert config.profile == 'corp'
    assert config.role_session_timeout == 7200
    assert config.default_region == 'eu-central-1'
    assert config.mfa_username == 'jdoe'


def test_config_file_from_environment(log, config_file):
    config = load_config(log, {}, {'ASSUME_ROLE_CONFIG': config_file})
    assert config.profile == 'corp'


def test_environment_beats_file(log, config_file):
    environ = {
        'AWS_PROFILE_ASSUME_ROLE': 'other',
        'AWS_ROLE_SESSION_TIMEOUT': '1800',
        'AWS_MFA_USERNAME': 'alice',
    }
    config = load_config(log, {'--config': config_file}, environ)

    assert config.profile == 'other'
    assert config.role_session_timeout == 1800
    assert config.mfa_username == 'alice'


def test_options_beat_environment(log, config_file):
    args = {'--config': config_file, '--profile': 'cli', '--duration': '900'}
    environ = {'AWS_PROFILE_ASSUME_ROLE': 'other', 'AWS_ROLE_SESSION_TIMEOUT': '1800'}
    config = load_config(log, args, environ)

    assert config.profile == 'cli'
    assert config.role_session_timeout == 900


@pytest.mark.parametrize('environ', [
    {'AWS_NO_BASTION': 'true'},
    {'AWS_NO_BASTION': '1'},
    {'AWS_ASSUME_ROLE_AUTH_SCHEME': 'no-bastion'},
    {'AWS_ASSUME_ROLE_AUTH_SCHEME': 'bastion', 'AWS_NO_BASTION': 'yes'},
])
def test_no_bastion_from_environment(log, environ):
    config = load_config(log, {}, environ)
    assert config.auth_scheme == 'no-bastion'
    assert not config.bastion


def test_no_bastion_option(log):
    assert not load_config(log, {'--no-bastion': True}, {}).bastion


def test_false_no_bastion_flag(log):
    assert load_config(log, {}, {'AWS_NO_BASTION': 'false'}).bastion


def test_debug_from_environment(log):
    assert load_config(log, {}, {'ASSUME_ROLE_DEBUG': '1'}).debug is True


def test_unknown_auth_scheme(log):
    with pytest.raises(ConfigError):
        load_config(log, {}, {'AWS_ASSUME_ROLE_AUTH_SCHEME': 'saml'})


@pytest.mark.parametrize('value', ['abc', '60', '43201', '1.5'])
def test_bad_role_session_timeout(log, value):
    with pytest.raises(ConfigError):
        load_config(log, {}, {'AWS_ROLE_SESSION_TIMEOUT': value})


def test_role_session_timeout_ceiling(log):
    config = load_config(log, {}, {'AWS_ROLE_SESSION_TIMEOUT': '43200'})
    assert config.role_session_timeout == 43200


def test_missing_explicit_config_file(log, tmp_path):
    with pytest.raises(ConfigError):
        load_config(log, {'--config': str(tmp_path / 'missing.yaml')}, {})


def test_malformed_config_file(log, tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("profile: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(log, {'--config': str(path)}, {})


def test_config_file_schema(log, tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("session_timeout: forever\nunknown_key: 1\n")
    with pytest.raises(ConfigError):
        load_config(log, {'--config': str(path)}, {})


def test_empty_config_file(log, tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("")
    assert load_config(log, {'--config': str(path)}, {}).profile == 'default'


def test_state_file_is_expanded(log, tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("state_file: ~/.assume-role/session.yaml\n")
    config = load_config(log, {'--config': str(path)}, {})
    assert config.state_file == os.path.expanduser('~/.assume-role/session.yaml')


def test_config_rejects_unknown_attributes():
    with pytest.raises(TypeError):
        Config(colour='blue')


def test_config_does_not_share_defaults():
    config = Config()
    config.required_commands.append('jq')
    assert DEFAULTS['required_commands'] == []
