#!/usr/bin/env python


"""Assume an AWS IAM role, optionally through an MFA protected bastion session.

Usage:
  assume-role init
  assume-role unassume [--config FILE] [-d] [--boto-log]
  assume-role [ACCOUNT [ROLE [MFA_TOKEN [REGION]]]]
              [--config FILE]
              [--profile NAME]
              [--accounts-file FILE]
              [--duration SECONDS]
              [--no-bastion]
              [--force-renew]
              [-d] [--boto-log]
  assume-role (-h | --help | --version)

Modes of operation:
  unassume      Print statements removing all assumed credentials.
  init          Shell integration hook.  Not supported yet.

Arguments:
  ACCOUNT       Account alias from the accounts file, or 12 digit account id.
                Use 'parent:child' to go through a parent profile first.
  ROLE          Name of the IAM role to assume.
  MFA_TOKEN     6 digit tokencode provided by MFA device.
  REGION        AWS region to export.

Options:
  -h, --help                Show this help message and exit.
  --version                 Display version info and exit.
  --config FILE             Config file in yaml format.
  --profile NAME            AWS credentials profile holding your identity.
  --accounts-file FILE      JSON file mapping account aliases to ids.
  --duration SECONDS        Role session duration in seconds.
  --no-bastion              Assume the role directly from the profile.
  --force-renew             Request a new bastion session even if valid.
  -d, --debug               Increase log level to 'DEBUG'.
  --boto-log                Include botocore and boto3 logs in log stream.

Output is a list of shell statements.  Use it like this:

  eval "$(assume-role production admin)"
  eval "$(assume-role unassume)"

"""

import os
import sys
import logging

from docopt import docopt

import assumerole
from assumerole.accounts import Prompter
from assumerole.broker import assume_role, unassume_role
from assumerole.config import load_config
from assumerole.errors import AssumeRoleError
from assumerole.exporter import EvalExporter
from assumerole.utils import get_logger, is_true


def main():
    args = docopt(__doc__, version=assumerole.__version__)
    if is_true(os.environ.get('ASSUME_ROLE_DEBUG')):
        args['--debug'] = True
    log = get_logger(args)
    log.debug("%s: args:\n%s" % (__name__,
            {k: v for k, v in args.items() if k != 'MFA_TOKEN'}))

    if args['init']:
        log.error('init is not supported')
        sys.exit(1)

    exporter = EvalExporter(sys.stdout)
    try:
        config = load_config(log, args)
        if config.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        if args['unassume']:
            unassume_role(log, exporter, os.environ, config)
            return
        assume_role(
            log, config,
            exporter=exporter,
            environ=os.environ,
            account=args['ACCOUNT'],
            role=args['ROLE'],
            mfa_token=args['MFA_TOKEN'],
            region=args['REGION'],
            eval_mode=True,
            prompter=Prompter(interactive=sys.stdin.isatty()),
            force_renew=args['--force-renew'],
        )
    except AssumeRoleError as e:
        log.critical("%s: %s" % (e.__class__.__name__, e))
        if not args['unassume']:
            log.info('role cleared. to restore static keys run: '
                    'eval "$(assume-role unassume)"')
        sys.exit(1)
    except KeyboardInterrupt:
        log.error('interrupted')
        sys.exit(130)


if __name__ == "__main__":
    main()
