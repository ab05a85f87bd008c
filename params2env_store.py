#!/usr/bin/env python3
"""
AWS SSM Parameter Store access.

``Boto3ClientFactory.newClient(region, role)`` builds an ``SsmParameterStore``
for one region, assuming ``role`` through STS first when one is given. Store
methods translate botocore failures into the params2env error types.
"""

import logging
import time

import boto3
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError as AwsClientError

from params2env_errors import (
	AlreadyExistsError,
	ClientError,
	MissingRegionError,
	NotFoundError,
	StoreError,
)

logger = logging.getLogger(__name__)

# START: Preparation > Globals ............................................... #
SESSION_NAME_PREFIX = 'params2env'

# END: Preparation > Globals ................................................. #

def _errorCode(e):
	return e.response.get('Error', {}).get('Code', '')


def translateAwsError(e, action, path, region):
	"""Map a botocore exception raised by an SSM call to a params2env error."""
	code = _errorCode(e) if isinstance(e, AwsClientError) else ''

	if code == 'ParameterNotFound':
		return NotFoundError("parameter '{0}' not found in region '{1}'".format(path, region))
	if code == 'ParameterAlreadyExists':
		return AlreadyExistsError(
			"parameter '{0}' already exists in region '{1}' (use --overwrite to replace it)".format(path, region)
		)
	if code == 'AccessDeniedException':
		return StoreError('insufficient permissions to {0} parameter {1}'.format(action, path))
	return StoreError('failed to {0} parameter {1}: {2}'.format(action, path, e))


# START: Store ............................................................... #
class SsmParameterStore:
	def __init__(self, client, region):
		self.client = client
		self.region = region

	def get(self, path):
		try:
			response = self.client.get_parameter(
				Name=path,
				WithDecryption=True
			)
		except (AwsClientError, BotoCoreError) as e:
			raise translateAwsError(e, 'get', path, self.region) from e

		parameter = response.get('Parameter') or {}
		if 'Value' not in parameter:
			raise StoreError('parameter {0} has no value'.format(path))
		return parameter['Value']

	def put(self, path, value, param_type=None, kms_key=None, overwrite=False, description=None):
		# Only send optional fields that are actually set
		request = {
			'Name': path,
			'Value': value,
			'Overwrite': bool(overwrite),
		}
		if param_type:
			request['Type'] = param_type
		if kms_key:
			request['KeyId'] = kms_key
		if description:
			request['Description'] = description

		try:
			self.client.put_parameter(**request)
		except (AwsClientError, BotoCoreError) as e:
			raise translateAwsError(e, 'put', path, self.region) from e

	def delete(self, path):
		try:
			self.client.delete_parameter(Name=path)
		except (AwsClientError, BotoCoreError) as e:
			raise translateAwsError(e, 'delete', path, self.region) from e

# END: Store ................................................................. #

# START: Client factory ...................................................... #
class Boto3ClientFactory:
	def __init__(self, session=None):
		self.session = session

	def _session(self):
		if self.session is None:
			self.session = boto3.session.Session()
		return self.session

	def assumeRole(self, region, role):
		try:
			sts = self._session().client(
				service_name='sts',
				region_name=region
			)
			response = sts.assume_role(
				RoleArn=role,
				RoleSessionName='{0}-{1}'.format(SESSION_NAME_PREFIX, int(time.time()))
			)
		except (AwsClientError, BotoCoreError) as e:
			raise ClientError('failed to assume role {0}: {1}'.format(role, e)) from e

		return response['Credentials']

	def newClient(self, region, role=None):
		if not region:
			raise MissingRegionError('region is required')

		client_kwargs = {'region_name': region}
		if role:
			logger.debug('Assuming role role=%s region=%s', role, region)
			credentials = self.assumeRole(region, role)
			client_kwargs.update(
				aws_access_key_id=credentials['AccessKeyId'],
				aws_secret_access_key=credentials['SecretAccessKey'],
				aws_session_token=credentials['SessionToken'],
			)

		try:
			client = self._session().client('ssm', **client_kwargs)
		except (AwsClientError, BotoCoreError) as e:
			raise ClientError('failed to create AWS client for region {0}: {1}'.format(region, e)) from e

		return SsmParameterStore(client, region)

# END: Client factory ........................................................ #
