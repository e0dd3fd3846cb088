"""
Resolve the inputs of a role assumption: account, role, MFA token, region.

Account names are looked up in a JSON alias file of the form:

    {
      "production": "123456789012",
      "staging": 210987654321
    }

Names not found there are taken to be account ids.  A 'parent:child' name
first switches the default profile to 'parent' through an external profile
switcher, then resolves 'child'.
"""

import os
import sys
import json
import subprocess

from assumerole.errors import (
    AssumeRoleError,
    InvalidAccountId,
    MissingDelegationTool,
    MissingDependency,
    MissingMfaToken,
    MissingRegion,
    MissingRole,
)
from assumerole.utils import missing_commands, valid_account_id


DELIMITER = ':'


class Prompter(object):
    """
    Ask the user for missing input.  Prompts are written to stderr so they
    never end up in output captured for eval.
    """

    def __init__(self, interactive=True, stdin=None, stderr=None):
        self.interactive = interactive
        self.stdin = stdin or sys.stdin
        self.stderr = stderr or sys.stderr

    def ask(self, message, default=None):
        """
        Return the user's answer, 'default' for an empty answer, or None
        when prompting is not allowed.
        """
        if not self.interactive:
            return None
        if default:
            message = '%s [%s]' % (message, default)
        self.stderr.write('%s: ' % message)
        self.stderr.flush()
        answer = self.stdin.readline().strip()
        return answer or default


class Invocation(object):
    """Resolved parameters of a single call"""

    def __init__(self, account_name, account_id, role, mfa_token, region):
        self.account_name = account_name
        self.account_id = account_id
        self.role = role
        self.mfa_token = mfa_token
        self.region = region

    def clear(self):
        self.mfa_token = None

    def __repr__(self):
        return 'Invocation(account=%s/%s, role=%s, region=%s)' % (
                self.account_name, self.account_id, self.role, self.region)


def check_dependencies(config):
    missing = missing_commands(config.required_commands)
    if missing:
        raise MissingDependency('required commands not installed: %s' %
                ', '.join(missing))


def load_aliases(log, accounts_file):
    """
    Return the alias -> account id mapping in 'accounts_file'.  A missing
    or malformed file is an empty mapping.
    """
    if not accounts_file or not os.path.isfile(accounts_file):
        log.debug('no accounts file at %s' % accounts_file)
        return {}
    with open(accounts_file) as f:
        try:
            aliases = json.load(f)
        except (ValueError, UnicodeDecodeError):
            log.warning('%s is not valid json, ignoring aliases' % accounts_file)
            return {}
    if not isinstance(aliases, dict):
        log.warning('%s is not a json object, ignoring aliases' % accounts_file)
        return {}
    return aliases


def lookup_account_id(log, accounts_file, name):
    """Return the account id aliased to 'name', or 'name' itself"""
    account_id = load_aliases(log, accounts_file).get(name)
    if isinstance(account_id, bool) or not isinstance(account_id, (str, int)):
        return name
    log.debug("alias '%s' -> %s" % (name, account_id))
    return str(account_id)


def switch_parent_profile(log, config, parent):
    """
    Hand 'parent' to the external profile switcher and make it the default
    profile for the rest of this call.
    """
    if missing_commands([config.profile_switcher]):
        raise MissingDelegationTool(
            "'%s' is required for parent%schild accounts" %
            (config.profile_switcher, DELIMITER))
    log.info("switching to parent profile '%s'" % parent)
    try:
        subprocess.run([config.profile_switcher, parent],
                stdout=sys.stderr, check=True)
    except subprocess.CalledProcessError as e:
        raise AssumeRoleError("'%s %s' failed with exit status %s" %
                (config.profile_switcher, parent, e.returncode))
    config.profile = parent


def resolve_account(log, config, prompter, account):
    """Return (account_name, account_id)"""
    if not account:
        account = prompter.ask('Assume into account')
    if not account:
        raise InvalidAccountId('no account given')
    if DELIMITER in account:
        parent, account = account.split(DELIMITER, 1)
        switch_parent_profile(log, config, parent)
    account_id = lookup_account_id(log, config.accounts_file, account)
    if not valid_account_id(log, account_id):
        raise InvalidAccountId("'%s' is not a valid account id" % account_id)
    return account, account_id


def resolve_role(log, config, prompter, role, eval_mode=False):
    if role:
        return role
    if not eval_mode:
        role = prompter.ask('Role', config.default_role)
    if not role:
        raise MissingRole('no role given')
    log.debug('role: %s' % role)
    return role


def resolve_region(log, config, environ, provider, prompter, region):
    """
    First match wins: argument, AWS_REGION, AWS_DEFAULT_REGION, region of
    the default profile, prompt.
    """
    region = (region
            or environ.get('AWS_REGION')
            or environ.get('AWS_DEFAULT_REGION')
            or provider.profile_region())
    if not region:
        region = prompter.ask('Region', config.default_region)
    if not region:
        raise MissingRegion('no region given')
    log.debug('region: %s' % region)
    return region


def resolve_mfa_token(prompter, mfa_token):
    if not mfa_token:
        mfa_token = prompter.ask('MFA token')
    if not mfa_token:
        raise MissingMfaToken('an MFA token is required')
    return mfa_token


def resolve_invocation(log, config, environ, provider, prompter,
        account=None, role=None, mfa_token=None, region=None, eval_mode=False):
    account_name, account_id = resolve_account(log, config, prompter, account)
    role = resolve_role(log, config, prompter, role, eval_mode)
    region = resolve_region(log, config, environ, provider, prompter, region)
    invocation = Invocation(account_name, account_id, role, mfa_token, region)
    log.debug(invocation)
    return invocation
