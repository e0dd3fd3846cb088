"""
Top level assume and unassume operations.

    from assumerole.broker import assume_role, unassume_role

    assume_role(log, config, account='production', role='admin', mfa_token='123456')
    ...
    unassume_role(log, DirectExporter())

Any failure tears the environment down before the error propagates, so it is
never left holding a partial set of credentials.
"""

import os
import sys

from assumerole.accounts import Prompter, check_dependencies, resolve_invocation
from assumerole.errors import AssumeRoleError, RoleAssumptionFailed
from assumerole.exporter import (
    DirectExporter,
    export,
    failure_assignments,
    teardown_assignments,
)
from assumerole.provider import CredentialProvider
from assumerole.role import assume
from assumerole.session import (
    SessionContext,
    ensure_session,
    load_state,
    remove_state,
    save_state,
    set_aside_static_credentials,
)
from assumerole.utils import now


def unassume_role(log, exporter, environ=None, config=None):
    """
    Remove all session and role variables and restore saved static keys.
    Safe to call when nothing is assumed.
    """
    if environ is None:
        environ = os.environ
    exporter.apply(teardown_assignments(environ))
    if config is not None:
        remove_state(log, config.state_file)
    log.info('unassumed role')


def assume_role(log, config, exporter=None, environ=None,
        account=None, role=None, mfa_token=None, region=None,
        eval_mode=False, provider=None, prompter=None, at=None,
        force_renew=False):
    """
    Resolve inputs, make sure a bastion session exists (bastion mode),
    assume the role and export the result.  Returns the SessionContext.

    'environ' is read for previous session state and static keys and is
    torn down on failure.  'exporter' receives the new variables; it
    defaults to writing back into 'environ'.  In eval mode a failure also
    sends 'exporter' the unset statements for the calling shell.
    """
    if environ is None:
        environ = os.environ
    if exporter is None:
        exporter = DirectExporter(environ)
    if prompter is None:
        prompter = Prompter(interactive=sys.stdin.isatty())
    if provider is None:
        provider = CredentialProvider(log, config)
    if at is None:
        at = now()
    invocation = None
    original = dict(environ)
    context = SessionContext.from_environ(environ)
    set_aside_static_credentials(log, context, environ)
    try:
        check_dependencies(config)
        if context.bastion is None:
            load_state(log, context, config.state_file)
        invocation = resolve_invocation(log, config, environ, provider, prompter,
                account, role, mfa_token, region, eval_mode)
        if config.bastion:
            ensure_session(log, config, context, provider, prompter, invocation,
                    at, force_renew)
            save_state(log, context, config.state_file)
        else:
            context.bastion = None
            context.session_start = None
        credentials = assume(log, config, provider, prompter, context, invocation, at)
        if isinstance(credentials, RoleAssumptionFailed):
            raise credentials
        context.role = credentials
        context.role_session_start = at
        context.account_id = invocation.account_id
        context.account_name = invocation.account_name
        context.account_role = invocation.role
        context.region = invocation.region
        context.profile = config.profile
        export(log, exporter, context)
        return context
    except AssumeRoleError:
        log.debug('tearing down environment after failure')
        unassume_role(log, DirectExporter(environ), environ)
        if eval_mode:
            exporter.apply(failure_assignments(original))
        raise
    finally:
        if invocation is not None:
            invocation.clear()
