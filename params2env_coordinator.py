#!/usr/bin/env python3
"""
Primary-then-replica sequencing of parameter store operations.

Every write goes to the primary region first. Only when that succeeds, and a
replica region is set, the same payload is sent to the replica. The primary
write is never rolled back: a failing replica step fails the whole operation
and leaves the primary in place, so re-running the same command is the way to
converge. The one exception is delete, where a replica that no longer has the
parameter counts as done.
"""

import logging
import os

from params2env_errors import (
	InvalidKMSArnError,
	MissingRegionError,
	NotFoundError,
	Params2EnvError,
	ReplicaError,
)
from params2env_validation import (
	validateKmsKey,
	validateParameterPath,
	validateParameterType,
	validateRegion,
	validateRegions,
	validateRoleArn,
)

logger = logging.getLogger(__name__)

# START: Preparation > Globals ............................................... #
KMS_ARN_FIELDS = 6
KMS_KEY_RESOURCE = 'key/'

PAST_TENSE = {
	'create': 'created',
	'modify': 'modified',
	'delete': 'deleted',
}

# END: Preparation > Globals ................................................. #

# START: Functions ........................................................... #
def rewriteKmsArnRegion(kms_key, region):
	"""
	Point a KMS key ARN at ``region``.

	Aliases and bare key ids are returned untouched. Anything starting with
	``arn:`` must be a well formed key ARN, otherwise InvalidKMSArnError.
	"""
	if not kms_key or not kms_key.startswith('arn:'):
		return kms_key

	fields = kms_key.split(':')
	if len(fields) != KMS_ARN_FIELDS:
		raise InvalidKMSArnError(
			'invalid KMS key ARN {0}: expected {1} colon-separated fields, got {2}'.format(
				kms_key, KMS_ARN_FIELDS, len(fields))
		)
	if fields[2] != 'kms':
		raise InvalidKMSArnError('invalid KMS key ARN {0}: service must be kms'.format(kms_key))
	if not fields[4]:
		raise InvalidKMSArnError('invalid KMS key ARN {0}: missing account id'.format(kms_key))

	resource = fields[5]
	if not resource.startswith(KMS_KEY_RESOURCE) or len(resource) == len(KMS_KEY_RESOURCE):
		raise InvalidKMSArnError('invalid KMS key ARN {0}: resource must be key/<id>'.format(kms_key))

	fields[3] = region
	return ':'.join(fields)

# END: Functions ............................................................. #

# START: Coordinator ......................................................... #
class ParameterCoordinator:
	def __init__(self, client_factory, environ=None, out=None):
		self.client_factory = client_factory
		self.environ = environ if environ is not None else os.environ
		# None means sys.stdout at print time
		self.out = out

	def _say(self, line):
		print(line, file=self.out)

	def resolveRegion(self, flag_region='', config_region=''):
		# flag > config > AWS_REGION
		region = flag_region or config_region or self.environ.get('AWS_REGION', '')
		if not region:
			raise MissingRegionError()
		return region

	def _validateTargets(self, region, replica, role):
		validateRegion(region)
		validateRegion(replica, 'replica region')
		validateRoleArn(role)
		validateRegions(region, replica)

	def _sequence(self, verb, path, region, replica, role, primary_call, replica_call):
		# Primary: any failure aborts, nothing is attempted on the replica
		store = self.client_factory.newClient(region, role)
		if verb == 'delete':
			self._say("Deleting parameter '{0}' in region '{1}'...".format(path, region))
		primary_call(store)
		self._say("Successfully {0} parameter '{1}' in region '{2}'".format(PAST_TENSE[verb], path, region))

		if not replica:
			return

		try:
			replica_store = self.client_factory.newClient(replica, role)
		except Params2EnvError as e:
			raise ReplicaError(replica, e) from e

		if verb == 'delete':
			self._say("Deleting parameter '{0}' in replica region '{1}'...".format(path, replica))
		try:
			replica_call(replica_store)
		except NotFoundError as e:
			if verb != 'delete':
				raise ReplicaError(replica, e) from e
			# Already absent on the replica is the goal of a delete
			logger.warning(
				"parameter '%s' not found in replica region '%s' (already deleted or never existed)",
				path, replica,
			)
			return
		except Params2EnvError as e:
			raise ReplicaError(replica, e) from e

		self._say("Successfully {0} parameter '{1}' in replica region '{2}'".format(PAST_TENSE[verb], path, replica))

	def read(self, params, region='', config_region='', role=''):
		"""
		Read the given parameters in list order.

		A parameter's own ``region`` wins over the flag/config/env chain. All
		names and regions are checked before the first network call. Returns
		a list of ``(param, region, value)``.
		"""
		validateRoleArn(role)
		targets = []
		for param in params:
			validateParameterPath(param.name)
			param_region = param.region or self.resolveRegion(region, config_region)
			validateRegion(param_region)
			targets.append((param, param_region))

		results = []
		for param, param_region in targets:
			store = self.client_factory.newClient(param_region, role)
			logger.debug('Reading parameter path=%s region=%s', param.name, param_region)
			results.append((param, param_region, store.get(param.name)))
		return results

	def create(self, path, value, param_type='String', description='', kms='',
			region='', config_region='', replica='', role='', overwrite=False):
		validateParameterPath(path)
		region = self.resolveRegion(region, config_region)
		self._validateTargets(region, replica, role)
		param_type = validateParameterType(param_type)
		validateKmsKey(kms)

		# Rewrite up front so a malformed ARN fails before any write
		replica_kms = rewriteKmsArnRegion(kms, replica) if replica else kms

		self._sequence(
			'create', path, region, replica, role,
			lambda store: store.put(path, value, param_type, kms, overwrite, description),
			lambda store: store.put(path, value, param_type, replica_kms, overwrite, description),
		)

	def modify(self, path, value, description='', region='', config_region='', replica='', role=''):
		validateParameterPath(path)
		region = self.resolveRegion(region, config_region)
		self._validateTargets(region, replica, role)

		def call(store):
			store.put(path, value, None, None, True, description)

		self._sequence('modify', path, region, replica, role, call, call)

	def delete(self, path, region='', config_region='', replica='', role=''):
		validateParameterPath(path)
		region = self.resolveRegion(region, config_region)
		self._validateTargets(region, replica, role)

		def call(store):
			store.delete(path)

		self._sequence('delete', path, region, replica, role, call, call)

# END: Coordinator ........................................................... #
