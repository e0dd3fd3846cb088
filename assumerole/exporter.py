"""
Deliver credentials to the caller.

DirectExporter writes into an environment mapping, os.environ by default,
for use from Python code running in the process that needs the credentials.
EvalExporter writes shell statements to stdout for

    eval "$(assume-role production admin)"

An assignment is a (name, value) pair.  A value of None unsets the variable.
"""

import os
import sys

from assumerole.errors import ExportFailed, RoleAssumptionFailed
from assumerole.session import ROLE_VARS, SESSION_VARS, STATIC_VARS


def shell_quote(value):
    """Escape 'value' for use inside a double quoted shell string"""
    for char in ('\\', '"', '$', '`'):
        value = value.replace(char, '\\' + char)
    return value


class DirectExporter(object):

    def __init__(self, environ=None):
        self.environ = os.environ if environ is None else environ

    def apply(self, assignments):
        for name, value in assignments:
            if value is None:
                self.environ.pop(name, None)
            else:
                self.environ[name] = value


class EvalExporter(object):

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def apply(self, assignments):
        for name, value in assignments:
            if value is None:
                self.stream.write('unset %s;\n' % name)
            else:
                self.stream.write('export %s="%s";\n' % (name, shell_quote(value)))
        self.stream.flush()


def export(log, exporter, context):
    """Hand the role session in 'context' to 'exporter'"""
    if isinstance(context.role, RoleAssumptionFailed) or context.role is None:
        raise ExportFailed('no role session to export')
    exporter.apply(context.assignments())
    log.info('assumed role %s in account %s (%s)' % (
            context.account_role, context.account_name, context.account_id))


def teardown_assignments(environ):
    """
    Assignments that remove every session and role variable and put back
    static keys saved by an earlier call.
    """
    assignments = [(name, None) for name in ROLE_VARS + SESSION_VARS + STATIC_VARS]
    key_id = environ.get('AWS_STATIC_ACCESS_KEY_ID')
    secret = environ.get('AWS_STATIC_SECRET_ACCESS_KEY')
    if key_id and secret:
        assignments += [
            ('AWS_ACCESS_KEY_ID', key_id),
            ('AWS_SECRET_ACCESS_KEY', secret),
        ]
    return assignments


def failure_assignments(environ):
    """
    Assignments that clear role and session variables from the calling shell
    after a failed call.  'environ' is the environment as it was when the
    call started.  Saved static keys stay where they are for a later
    unassume, and long-lived keys that were never set aside are kept.
    """
    names = ROLE_VARS + SESSION_VARS
    static = (environ.get('AWS_ACCESS_KEY_ID')
            and not environ.get('AWS_SESSION_TOKEN')
            and not environ.get('AWS_STATIC_ACCESS_KEY_ID'))
    if static:
        names = tuple(name for name in names
                if name not in ('AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY'))
    return [(name, None) for name in names]
