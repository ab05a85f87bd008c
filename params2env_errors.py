#!/usr/bin/env python3

import enum

# START: Errors .............................................................. #
class Params2EnvError(Exception):
	"""Base for every error the CLI reports and exits non-zero on."""


class ConfigErrorKind(enum.Enum):
	UNREADABLE = 'unreadable'
	UNPARSEABLE = 'unparseable'
	INVALID = 'invalid'


class ConfigError(Params2EnvError):
	def __init__(self, kind, file, cause):
		self.kind = kind
		self.file = str(file)
		self.cause = cause
		super().__init__('{0} config file {1}: {2}'.format(kind.value, sanitizeForLog(self.file), cause))


class ValidationError(Params2EnvError):
	pass


class InvalidKMSArnError(ValidationError):
	pass


class MissingRegionError(Params2EnvError):
	def __init__(self, message=None):
		super().__init__(message or 'AWS region must be specified via --region, config file, or AWS_REGION environment variable')


class ClientError(Params2EnvError):
	pass


class StoreError(Params2EnvError):
	pass


class NotFoundError(StoreError):
	pass


class AlreadyExistsError(StoreError):
	pass


class OutputError(Params2EnvError):
	pass


class ReplicaError(Params2EnvError):
	# The primary write is already applied when one of these is raised
	def __init__(self, region, cause):
		self.region = region
		self.cause = cause
		self.primary_applied = True
		super().__init__('replica region {0!r}: {1}'.format(region, cause))

# END: Errors ................................................................ #

def sanitizeForLog(s_in):
	# No CR/LF, so values can't forge log lines
	return str(s_in).replace('\r', '').replace('\n', ' ')
