"""
Config and state file validator schema data
"""
import yaml

from cerberus import Validator


# Schema for the optional user config file.  Every key is optional; missing
# keys fall back to environment variables and then to built-in defaults.
#
CONFIG_FILE_SCHEMA = """
auth_scheme:
  type: string
  allowed:
  - bastion
  - no-bastion
profile:
  type: string
session_timeout:
  type: integer
  min: 900
  max: 129600
role_session_timeout:
  type: integer
  min: 900
  max: 43200
default_role:
  type: string
default_region:
  type: string
accounts_file:
  type: string
mfa_username:
  type: string
  nullable: True
mfa_serial:
  type: string
  nullable: True
profile_switcher:
  type: string
required_commands:
  type: list
  schema:
    type: string
state_file:
  type: string
  nullable: True
api_timeout:
  type: integer
  min: 1
debug:
  type: boolean
"""


# Schema for the bastion session state file written when 'state_file' is set.
#
STATE_FILE_SCHEMA = """
access_key_id:
  required: True
  type: string
secret_access_key:
  required: True
  type: string
session_token:
  required: True
  type: string
start:
  required: True
  type: integer
profile:
  type: string
"""


def config_validator(log):
    vconfig = Validator(yaml.safe_load(CONFIG_FILE_SCHEMA))
    log.debug("config_validator_schema: {}".format(vconfig.schema))
    return vconfig


def state_validator(log):
    vstate = Validator(yaml.safe_load(STATE_FILE_SCHEMA))
    log.debug("state_validator_schema: {}".format(vstate.schema))
    return vstate
