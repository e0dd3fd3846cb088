"""
Exceptions raised by assume-role.

Every error aborts the current invocation. RoleAssumptionFailed is the one
exception that is returned rather than raised: role.assume() hands it back as
a sentinel and broker.assume_role() turns it into a hard failure.
"""


class AssumeRoleError(RuntimeError):
    """Base class for all assume-role failures"""


class ConfigError(AssumeRoleError):
    """Config file or option values are not usable"""


class MissingDependency(AssumeRoleError):
    """A required external command is not installed"""


class MissingDelegationTool(AssumeRoleError):
    """parent:child account syntax used without the profile switcher"""


class InvalidAccountId(AssumeRoleError):
    """Resolved account id is not a 12 digit number"""


class MissingRole(AssumeRoleError):
    pass


class MissingRegion(AssumeRoleError):
    pass


class MissingMfaToken(AssumeRoleError):
    pass


class MfaDeviceLookupFailed(AssumeRoleError):
    pass


class InvalidMfaCode(AssumeRoleError):
    """The provider rejected the MFA one time pass code"""


class SessionRequestFailed(AssumeRoleError):
    """Generic failure requesting a bastion session token"""


class RoleAssumptionFailed(AssumeRoleError):
    """Generic failure assuming the target role"""


class ExportFailed(AssumeRoleError):
    """No valid role session to export"""
