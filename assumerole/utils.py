"""Utility functions used by the various assumerole modules"""

import re
import sys
import time
import shutil
import logging

import yaml


ACCOUNT_ID_PATTERN = re.compile(r'^[0-9]{12}$')
TRUTHY = ('1', 'true', 'yes', 'on')


def get_logger(args):
    """
    Setup logging.basicConfig from args.
    Return logging.Logger object.

    Log records always go to stderr.  In eval mode stdout carries nothing but
    shell statements.
    """
    # log level
    log_level = logging.INFO
    if args.get('--debug'):
        log_level = logging.DEBUG
    # log format
    log_format = 'assume-role: %(levelname)-9s%(message)s'
    if args.get('--debug'):
        log_format = 'assume-role: %(levelname)-9s%(funcName)s():  %(message)s'
    if not args.get('--boto-log'):
        logging.getLogger('botocore').propagate = False
        logging.getLogger('boto3').propagate = False
    logging.basicConfig(stream=sys.stderr, format=log_format, level=log_level)
    log = logging.getLogger(__name__)
    return log


def valid_account_id(log, account_id):
    """Test if account_id is a well formed 12 digit AWS account Id"""
    if account_id is None:
        return False
    if ACCOUNT_ID_PATTERN.match(str(account_id)):
        return True
    log.debug("account_id '%s' does not match %s" %
            (account_id, ACCOUNT_ID_PATTERN.pattern))
    return False


def is_true(value):
    """Interpret an environment variable string as a boolean"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def now():
    """Current unix time in whole seconds"""
    return int(time.time())


def missing_commands(commands):
    """Return the subset of 'commands' not found on PATH"""
    return [c for c in commands if shutil.which(c) is None]


def yamlfmt(dict_obj):
    """Convert a dictionary object into a yaml formated string"""
    return yaml.dump(dict_obj, default_flow_style=False)
