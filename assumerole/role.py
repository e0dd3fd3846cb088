"""Assume the target role, from the bastion session or the default profile"""

from assumerole.accounts import resolve_mfa_token
from assumerole.errors import RoleAssumptionFailed
from assumerole.utils import now


def role_arn(account_id, role_name):
    return "arn:aws:iam::%s:role/%s" % (account_id, role_name)


def assume(log, config, provider, prompter, context, invocation, at=None):
    """
    Return role Credentials, or a RoleAssumptionFailed instance when the
    provider call fails.  The failure is returned, not raised, so callers
    must check for it before using the result.

    Bastion mode calls as the bastion session and passes the account id as
    the external id.  No-bastion mode calls as the default profile with an
    MFA serial and code on every call.
    """
    if at is None:
        at = now()
    arn = role_arn(invocation.account_id, invocation.role)
    session_name = str(at)
    log.debug('assuming %s as session %s' % (arn, session_name))
    try:
        if config.bastion:
            return provider.assume_role(
                arn, session_name, config.role_session_timeout,
                region=invocation.region,
                credentials=context.bastion,
                external_id=invocation.account_id,
            )
        token = resolve_mfa_token(prompter, invocation.mfa_token)
        serial = config.mfa_serial or provider.lookup_mfa_serial(config.mfa_username)
        return provider.assume_role(
            arn, session_name, config.role_session_timeout,
            region=invocation.region,
            serial=serial,
            token=token,
        )
    except RoleAssumptionFailed as e:
        log.debug(e)
        return e
