"""
Session context and bastion session lifecycle.

A SessionContext holds everything known about the caller's credentials: the
bastion session, the role session, and any static keys set aside before the
first assumption.  It is read from an environment mapping at the start of a
call and turned back into variable assignments by the exporter.

Bastion session states:

    NoSession  no session credentials or no recorded start time
    Active     now - start <  session_timeout - SESSION_GRACE
    Expired    now - start >= session_timeout - SESSION_GRACE
"""

import os

import yaml

from assumerole.accounts import resolve_mfa_token
from assumerole.config import SESSION_GRACE
from assumerole.errors import ConfigError
from assumerole.utils import now, yamlfmt
from assumerole.validator import state_validator


NO_SESSION = 'NoSession'
ACTIVE = 'Active'
EXPIRED = 'Expired'

SESSION_VARS = (
    'AWS_SESSION_ACCESS_KEY_ID',
    'AWS_SESSION_SECRET_ACCESS_KEY',
    'AWS_SESSION_SESSION_TOKEN',
    'AWS_SESSION_SECURITY_TOKEN',
    'AWS_SESSION_START',
)
ROLE_VARS = (
    'AWS_ACCESS_KEY_ID',
    'AWS_SECRET_ACCESS_KEY',
    'AWS_SESSION_TOKEN',
    'AWS_SECURITY_TOKEN',
    'AWS_ACCOUNT_ID',
    'AWS_ACCOUNT_NAME',
    'AWS_ACCOUNT_ROLE',
    'AWS_ROLE_SESSION_START',
    'AWS_PROFILE_ASSUME_ROLE',
)
STATIC_VARS = (
    'AWS_STATIC_ACCESS_KEY_ID',
    'AWS_STATIC_SECRET_ACCESS_KEY',
)


class Credentials(object):
    """An access key id, secret key and session token triple"""

    def __init__(self, access_key_id, secret_access_key, session_token=None):
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token

    @classmethod
    def from_response(cls, response):
        """Build from an sts get_session_token or assume_role response"""
        credentials = response['Credentials']
        return cls(
            credentials['AccessKeyId'],
            credentials['SecretAccessKey'],
            credentials['SessionToken'],
        )

    def as_session_kwargs(self):
        return dict(
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            aws_session_token=self.session_token,
        )

    def __eq__(self, other):
        if not isinstance(other, Credentials):
            return NotImplemented
        return (self.access_key_id, self.secret_access_key, self.session_token) == (
                other.access_key_id, other.secret_access_key, other.session_token)

    def __repr__(self):
        return 'Credentials(access_key_id=%r)' % self.access_key_id


def parse_timestamp(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SessionContext(object):

    def __init__(self):
        self.bastion = None
        self.session_start = None
        self.role = None
        self.role_session_start = None
        self.account_id = None
        self.account_name = None
        self.account_role = None
        self.region = None
        self.profile = None
        self.static_access_key_id = None
        self.static_secret_access_key = None

    @classmethod
    def from_environ(cls, environ):
        context = cls()
        key_id = environ.get('AWS_SESSION_ACCESS_KEY_ID')
        secret = environ.get('AWS_SESSION_SECRET_ACCESS_KEY')
        token = environ.get('AWS_SESSION_SESSION_TOKEN')
        if key_id and secret and token:
            context.bastion = Credentials(key_id, secret, token)
            context.session_start = parse_timestamp(environ.get('AWS_SESSION_START'))
        context.profile = environ.get('AWS_PROFILE_ASSUME_ROLE')
        context.static_access_key_id = environ.get('AWS_STATIC_ACCESS_KEY_ID')
        context.static_secret_access_key = environ.get('AWS_STATIC_SECRET_ACCESS_KEY')
        return context

    @property
    def has_static_credentials(self):
        return bool(self.static_access_key_id and self.static_secret_access_key)

    def state(self, timeout, at=None):
        """Return the bastion session state at time 'at'"""
        if self.bastion is None or self.session_start is None:
            return NO_SESSION
        if at is None:
            at = now()
        if at - self.session_start >= timeout - SESSION_GRACE:
            return EXPIRED
        return ACTIVE

    def assignments(self):
        """
        Return a list of (name, value) pairs describing the environment for
        this context.  Only called once a role session exists.
        """
        role = self.role
        pairs = [
            ('AWS_ACCESS_KEY_ID', role.access_key_id),
            ('AWS_SECRET_ACCESS_KEY', role.secret_access_key),
            ('AWS_SESSION_TOKEN', role.session_token),
            ('AWS_SECURITY_TOKEN', role.session_token),
            ('AWS_ACCOUNT_ID', self.account_id),
            ('AWS_ACCOUNT_NAME', self.account_name),
            ('AWS_ACCOUNT_ROLE', self.account_role),
            ('AWS_REGION', self.region),
            ('AWS_DEFAULT_REGION', self.region),
            ('AWS_ROLE_SESSION_START', str(self.role_session_start)),
            ('AWS_PROFILE_ASSUME_ROLE', self.profile),
        ]
        if self.bastion is not None:
            pairs += [
                ('AWS_SESSION_ACCESS_KEY_ID', self.bastion.access_key_id),
                ('AWS_SESSION_SECRET_ACCESS_KEY', self.bastion.secret_access_key),
                ('AWS_SESSION_SESSION_TOKEN', self.bastion.session_token),
                ('AWS_SESSION_SECURITY_TOKEN', self.bastion.session_token),
                ('AWS_SESSION_START', str(self.session_start)),
            ]
        if self.has_static_credentials:
            pairs += [
                ('AWS_STATIC_ACCESS_KEY_ID', self.static_access_key_id),
                ('AWS_STATIC_SECRET_ACCESS_KEY', self.static_secret_access_key),
            ]
        return [(name, value) for name, value in pairs if value is not None]


def set_aside_static_credentials(log, context, environ):
    """
    Move long-lived keys out of AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY so
    the named credentials profile is used.  Keys that carry a session token
    are temporary (a previous role session, most likely) and are dropped.
    Keys already saved from an earlier call are never overwritten.
    """
    key_id = environ.pop('AWS_ACCESS_KEY_ID', None)
    secret = environ.pop('AWS_SECRET_ACCESS_KEY', None)
    token = environ.pop('AWS_SESSION_TOKEN', None)
    environ.pop('AWS_SECURITY_TOKEN', None)
    if context.has_static_credentials:
        return context
    if key_id and secret and not token:
        log.debug('saving static credentials for %s' % key_id)
        context.static_access_key_id = key_id
        context.static_secret_access_key = secret
        environ['AWS_STATIC_ACCESS_KEY_ID'] = key_id
        environ['AWS_STATIC_SECRET_ACCESS_KEY'] = secret
    return context


def ensure_session(log, config, context, provider, prompter, invocation,
        at=None, force=False):
    """
    Make sure 'context' holds an active bastion session, requesting a new
    one from the provider only when there is none or it is about to expire.
    """
    if at is None:
        at = now()
    state = context.state(config.session_timeout, at)
    if context.profile and context.profile != config.profile and state == ACTIVE:
        log.debug("bastion session belongs to profile '%s'" % context.profile)
        state = EXPIRED
    if state == ACTIVE and not force:
        log.debug('reusing bastion session, %s seconds old' % (at - context.session_start))
        return context
    log.debug('bastion session state: %s' % state)
    token = resolve_mfa_token(prompter, invocation.mfa_token)
    serial = config.mfa_serial or provider.lookup_mfa_serial(config.mfa_username)
    context.bastion = provider.get_session_token(serial, token, config.session_timeout)
    context.session_start = at
    context.profile = config.profile
    log.info('new bastion session valid for %s seconds' % config.session_timeout)
    return context


def load_state(log, context, state_file):
    """Populate the bastion session of 'context' from a yaml state file"""
    if not state_file or not os.path.isfile(state_file):
        return context
    log.debug('loading state file: %s' % state_file)
    with open(state_file) as f:
        try:
            state = yaml.safe_load(f.read())
        except yaml.YAMLError:
            log.warning('%s not a valid yaml file, ignoring' % state_file)
            return context
    if not isinstance(state, dict):
        log.warning('ignoring malformed state file %s' % state_file)
        return context
    validator = state_validator(log)
    if not validator.validate(state):
        log.warning('ignoring malformed state file %s' % state_file)
        log.debug('validator errors:\n%s' % yamlfmt(validator.errors))
        return context
    context.bastion = Credentials(
        state['access_key_id'],
        state['secret_access_key'],
        state['session_token'],
    )
    context.session_start = state['start']
    if state.get('profile'):
        context.profile = state['profile']
    return context


def save_state(log, context, state_file):
    """Write the bastion session of 'context' to a yaml state file"""
    if not state_file or context.bastion is None:
        return
    state_dir = os.path.dirname(state_file)
    if state_dir and not os.path.isdir(state_dir):
        os.makedirs(state_dir, mode=0o700)
    state = dict(
        access_key_id=context.bastion.access_key_id,
        secret_access_key=context.bastion.secret_access_key,
        session_token=context.bastion.session_token,
        start=context.session_start,
    )
    if context.profile:
        state['profile'] = context.profile
    try:
        fd = os.open(state_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    except OSError as e:
        raise ConfigError('cannot write state file %s: %s' % (state_file, e))
    with os.fdopen(fd, 'w') as f:
        yaml.safe_dump(state, f, default_flow_style=False)
    log.debug('saved bastion session to %s' % state_file)


def remove_state(log, state_file):
    if state_file and os.path.isfile(state_file):
        os.remove(state_file)
        log.debug('removed state file %s' % state_file)
