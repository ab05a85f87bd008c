#!/usr/bin/env python3

import re

from params2env_errors import ValidationError

# START: Preparation > Patterns .............................................. #
_uuid = '[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'
_region = '[a-z]{2}(-[a-z]+)+-\\d'

parameter_path_re = re.compile(r'^/[a-zA-Z0-9_.-]+(/[a-zA-Z0-9_.-]+)*$')
region_re = re.compile('^' + _region + '$')
kms_key_id_re = re.compile('^' + _uuid + '$')
kms_alias_re = re.compile(r'^alias/[a-zA-Z0-9/_-]+$')
kms_arn_re = re.compile('^arn:aws:kms:' + _region + ':\\d{12}:key/' + _uuid + '$')
role_arn_re = re.compile(r'^arn:aws:iam::\d{12}:role/[a-zA-Z0-9+=,.@_-]+(/[a-zA-Z0-9+=,.@_-]+)*$')

PARAMETER_TYPES = ('String', 'SecureString')

# END: Preparation > Patterns ................................................ #

# START: Functions ........................................................... #
def validateParameterPath(path):
	if not path:
		raise ValidationError('parameter path cannot be empty')
	if not path.startswith('/'):
		raise ValidationError("parameter path must start with '/'")
	if path.endswith('/'):
		raise ValidationError("parameter path must not end with '/'")
	if '//' in path:
		raise ValidationError("parameter path must not contain consecutive '/'")
	if not parameter_path_re.match(path):
		raise ValidationError('invalid parameter path format: {0}'.format(path))


def validateRegion(region, label='region'):
	# Empty means "unset"
	if not region:
		return
	if not region_re.match(region):
		raise ValidationError('invalid {0} format: {1}'.format(label, region))


def validateKmsKey(key):
	if not key:
		return
	if kms_key_id_re.match(key) or kms_alias_re.match(key) or kms_arn_re.match(key):
		return
	raise ValidationError('invalid KMS key format: {0}'.format(key))


def validateRoleArn(arn):
	if not arn:
		return
	if not role_arn_re.match(arn):
		raise ValidationError('invalid role ARN format: {0}'.format(arn))


def validateRegions(primary, replica):
	if replica and primary == replica:
		raise ValidationError(
			"replica region '{0}' cannot be the same as primary region '{1}'".format(replica, primary)
		)


def validateParameterType(param_type):
	"""Return the trimmed type, or raise if it is not String/SecureString."""
	p_type = (param_type or '').strip()
	if p_type not in PARAMETER_TYPES:
		raise ValidationError(
			"invalid parameter type: {0} (must be '{1}' or '{2}')".format(p_type, *PARAMETER_TYPES)
		)
	return p_type

# END: Functions ............................................................. #
