import os

import yaml

from assumerole.errors import ConfigError
from assumerole.utils import is_true, yamlfmt
from assumerole.validator import config_validator


DEFAULT_CONFIG_FILE = '~/.assume-role/config.yaml'

# Sessions are renewed this many seconds before they actually expire
SESSION_GRACE = 200

DEFAULTS = dict(
    auth_scheme='bastion',
    profile='default',
    session_timeout=43200,
    role_session_timeout=3600,
    default_role='read',
    default_region='us-east-1',
    accounts_file='~/.aws/accounts',
    mfa_username=None,
    mfa_serial=None,
    profile_switcher='aws-profile-switch',
    required_commands=[],
    state_file=None,
    api_timeout=10,
    debug=False,
)

# config attribute -> environment variable
ENV_VARS = dict(
    auth_scheme='AWS_ASSUME_ROLE_AUTH_SCHEME',
    profile='AWS_PROFILE_ASSUME_ROLE',
    session_timeout='AWS_SESSION_TIMEOUT',
    role_session_timeout='AWS_ROLE_SESSION_TIMEOUT',
    accounts_file='ACCOUNTS_FILE',
    mfa_username='AWS_MFA_USERNAME',
    mfa_serial='AWS_MFA_SERIAL',
    debug='ASSUME_ROLE_DEBUG',
)

# config attribute -> docopt option
OPTIONS = dict(
    profile='--profile',
    accounts_file='--accounts-file',
    role_session_timeout='--duration',
)

INTEGER_FIELDS = ('session_timeout', 'role_session_timeout', 'api_timeout')


class Config(object):
    """
    Resolved runtime settings.  See DEFAULTS for the full list of attributes.
    Build with load_config() rather than directly.
    """

    def __init__(self, **settings):
        unknown = set(settings) - set(DEFAULTS)
        if unknown:
            raise TypeError("unknown config attributes: %s" % sorted(unknown))
        values = dict(DEFAULTS, required_commands=list(DEFAULTS['required_commands']))
        values.update(settings)
        for key, value in values.items():
            setattr(self, key, value)

    @property
    def bastion(self):
        return self.auth_scheme == 'bastion'

    def __repr__(self):
        return 'Config(%s)' % ', '.join(
                '%s=%r' % (k, getattr(self, k)) for k in sorted(DEFAULTS))


def config_file_path(args, environ):
    if args.get('--config'):
        return os.path.expanduser(args['--config']), True
    if environ.get('ASSUME_ROLE_CONFIG'):
        return os.path.expanduser(environ['ASSUME_ROLE_CONFIG']), True
    return os.path.expanduser(DEFAULT_CONFIG_FILE), False


def scan_config_file(log, args, environ):
    """
    Load the yaml config file.  Returns a dict, empty when the default
    config file does not exist.
    """
    config_file, explicit = config_file_path(args, environ)
    if not os.path.isfile(config_file):
        if explicit:
            raise ConfigError("config_file not found: {}".format(config_file))
        log.debug("no config file at {}, using defaults".format(config_file))
        return {}
    log.debug("loading config file: {}".format(config_file))
    with open(config_file) as f:
        try:
            config = yaml.safe_load(f.read())
        except (yaml.YAMLError, UnicodeDecodeError):
            raise ConfigError("{} not a valid yaml file".format(config_file))
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("{} must contain a yaml mapping".format(config_file))
    validator = config_validator(log)
    if not validator.validate(config):
        raise ConfigError("schema validation failed for config_file {}:\n{}".format(
                config_file, yamlfmt(validator.errors)))
    log.debug("config: {}".format(config))
    return config


def scan_environment(environ):
    """Collect config settings from environment variables"""
    settings = {}
    for key, var in ENV_VARS.items():
        value = environ.get(var)
        if value is None or value == '':
            continue
        if key == 'debug':
            settings[key] = is_true(value)
        else:
            settings[key] = value
    if is_true(environ.get('AWS_NO_BASTION')):
        settings['auth_scheme'] = 'no-bastion'
    return settings


def scan_options(args):
    """Collect config settings from cli options"""
    settings = {}
    for key, option in OPTIONS.items():
        if args.get(option):
            settings[key] = args[option]
    if args.get('--no-bastion'):
        settings['auth_scheme'] = 'no-bastion'
    if args.get('--debug'):
        settings['debug'] = True
    return settings


def coerce(settings):
    """Cast integer fields gathered from env vars and cli options"""
    for key in INTEGER_FIELDS:
        if key in settings and not isinstance(settings[key], int):
            try:
                settings[key] = int(str(settings[key]).strip())
            except ValueError:
                raise ConfigError("'{}' must be an integer, got '{}'".format(
                        key, settings[key]))
    return settings


def validate_config(log, settings):
    validator = config_validator(log)
    document = {k: v for k, v in settings.items() if v is not None}
    if not validator.validate(document):
        raise ConfigError("invalid configuration:\n{}".format(
                yamlfmt(validator.errors)))


def load_config(log, args=None, environ=None):
    """
    Assemble config options from various sources and return a Config.
    Precedence: cli options, environment, config file, defaults.
    """
    args = args or {}
    if environ is None:
        environ = os.environ
    settings = dict(DEFAULTS)
    settings.update(scan_config_file(log, args, environ))
    settings.update(coerce(scan_environment(environ)))
    settings.update(coerce(scan_options(args)))
    validate_config(log, settings)
    settings['accounts_file'] = os.path.expanduser(settings['accounts_file'])
    if settings['state_file']:
        settings['state_file'] = os.path.expanduser(settings['state_file'])
    config = Config(**settings)
    log.debug("config: {}".format(config))
    return config
