"""
Credential provider backed by boto3.

All STS and IAM traffic goes through CredentialProvider.  Failures come back
as the assume-role exception matching the call that failed, so callers never
look at botocore errors or provider message text.
"""

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from assumerole.errors import (
    InvalidMfaCode,
    MfaDeviceLookupFailed,
    RoleAssumptionFailed,
    SessionRequestFailed,
)
from assumerole.session import Credentials


# error codes sts returns for a rejected MFA code on get_session_token
MFA_REJECTED_CODES = ('AccessDenied',)


def error_code(e):
    if isinstance(e, ClientError):
        return e.response.get('Error', {}).get('Code')
    return None


class CredentialProvider(object):

    def __init__(self, log, config, session_factory=boto3.Session):
        self.log = log
        self.config = config
        self.session_factory = session_factory
        self.client_config = BotoConfig(
            connect_timeout=config.api_timeout,
            read_timeout=config.api_timeout,
            retries=dict(total_max_attempts=1),
        )

    def session(self, credentials=None, region=None):
        """
        Return a boto3 session for the default profile, or for 'credentials'
        when given.
        """
        if credentials is not None:
            return self.session_factory(region_name=region,
                    **credentials.as_session_kwargs())
        return self.session_factory(profile_name=self.config.profile,
                region_name=region)

    def client(self, service, credentials=None, region=None):
        return self.session(credentials, region).client(service,
                config=self.client_config)

    def profile_region(self):
        """Region configured for the default profile, or None"""
        try:
            return self.session().region_name
        except BotoCoreError as e:
            self.log.debug("no region for profile '%s': %s" % (self.config.profile, e))
            return None

    def lookup_mfa_serial(self, user_name=None):
        """Return the serial number of the first MFA device of the user"""
        kwargs = dict(UserName=user_name) if user_name else dict()
        try:
            devices = self.client('iam').list_mfa_devices(**kwargs)['MFADevices']
        except (ClientError, BotoCoreError) as e:
            raise MfaDeviceLookupFailed('cannot list MFA devices: %s' % e)
        if not devices:
            raise MfaDeviceLookupFailed("no MFA device found for profile '%s'" %
                    self.config.profile)
        serial = devices[0]['SerialNumber']
        self.log.debug('mfa serial: %s' % serial)
        return serial

    def get_session_token(self, serial, token, duration):
        """Request bastion session credentials under the default profile"""
        try:
            response = self.client('sts').get_session_token(
                DurationSeconds=duration,
                SerialNumber=serial,
                TokenCode=token,
            )
        except ClientError as e:
            if error_code(e) in MFA_REJECTED_CODES:
                raise InvalidMfaCode('MFA code rejected: %s' % e)
            raise SessionRequestFailed('cannot get session token: %s' % e)
        except BotoCoreError as e:
            raise SessionRequestFailed('cannot get session token: %s' % e)
        return Credentials.from_response(response)

    def assume_role(self, role_arn, session_name, duration, region=None,
            credentials=None, external_id=None, serial=None, token=None):
        """
        Assume 'role_arn' as 'credentials', or as the default profile when
        no credentials are given.
        """
        kwargs = dict(
            RoleArn=role_arn,
            RoleSessionName=session_name,
            DurationSeconds=duration,
        )
        if external_id:
            kwargs['ExternalId'] = external_id
        if serial:
            kwargs['SerialNumber'] = serial
            kwargs['TokenCode'] = token
        try:
            response = self.client('sts', credentials, region).assume_role(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise RoleAssumptionFailed('cannot assume role %s: %s' % (role_arn, e))
        return Credentials.from_response(response)
