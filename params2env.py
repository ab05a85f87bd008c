#!/usr/bin/env python3
"""
params2env: manage AWS SSM Parameter Store entries from the command line.

Parameters can be read (and rendered as ``export NAME="value"`` lines),
created, modified and deleted, optionally replicating writes to a second
region and assuming an IAM role first.

Settings are taken, highest priority first, from:
  1. command-line flags
  2. .params2env.yaml in the current directory
  3. .params2env.yaml in the home directory
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from typing import Optional

from params2env_config import OUTPUT_MODES, ConfigResolver, ParamConfig
from params2env_coordinator import ParameterCoordinator
from params2env_errors import OutputError, Params2EnvError, ValidationError, sanitizeForLog
from params2env_logger import initLogging
from params2env_store import Boto3ClientFactory

logger = logging.getLogger('params2env')

# START: Preparation > Globals ............................................... #
VERSION = '0.1.0'
COMMIT = 'none'
DATE = 'unknown'

DIR_MODE = 0o700
FILE_MODE = 0o600

TRUE_WORDS = ('1', 't', 'true', 'y', 'yes')
FALSE_WORDS = ('0', 'f', 'false', 'n', 'no')

# END: Preparation > Globals ................................................. #

# START: Arguments ........................................................... #
def parseBool(s_in):
	s_norm = str(s_in).strip().lower()
	if s_norm in TRUE_WORDS:
		return True
	if s_norm in FALSE_WORDS:
		return False
	raise argparse.ArgumentTypeError('invalid boolean value: {0!r}'.format(s_in))


@dataclasses.dataclass(frozen=True)
class ParsedArgs:
	"""Flags of one invocation. Empty string / None means "not given"."""

	command: Optional[str] = None
	loglevel: str = 'info'
	version: bool = False
	path: str = ''
	value: str = ''
	type: str = 'String'
	description: str = ''
	kms: str = ''
	region: str = ''
	role: str = ''
	replica: str = ''
	overwrite: bool = False
	file: str = ''
	upper: Optional[bool] = None
	env_prefix: str = ''
	env: str = ''

	@classmethod
	def fromNamespace(cls, namespace):
		values = {}
		for field in dataclasses.fields(cls):
			if hasattr(namespace, field.name):
				values[field.name] = getattr(namespace, field.name)
		return cls(**values)


def _addTargetFlags(parser, replica=True):
	parser.add_argument('--region', default='', help='AWS region (default: config file or AWS_REGION)')
	parser.add_argument('--role', default='', help='AWS role ARN to assume')
	if replica:
		parser.add_argument('--replica', default='', help='Region to replicate the operation to')


def buildParser():
	# --loglevel is accepted before or after the subcommand
	common = argparse.ArgumentParser(add_help=False)
	common.add_argument(
		'--loglevel',
		default=argparse.SUPPRESS,
		help='Log level (debug, info, warn, error)',
	)

	parser = argparse.ArgumentParser(
		prog='params2env',
		description='A tool to manage AWS SSM Parameter Store entries',
	)
	parser.add_argument('--loglevel', default='info', help='Log level (debug, info, warn, error) (default: info)')
	parser.add_argument('--version', action='store_true', help='Show version information')
	subparsers = parser.add_subparsers(dest='command', help='Command to run')

	# Command: read
	read_parser = subparsers.add_parser(
		'read', parents=[common], help='Read parameters and print them as export lines')
	read_parser.add_argument('--path', default='', help='Parameter path (required if no params in config)')
	_addTargetFlags(read_parser, replica=False)
	read_parser.add_argument('--file', default='', help='File to write to')
	read_parser.add_argument(
		'--upper', nargs='?', const=True, default=None, type=parseBool,
		help='Upper-case the env var name (default: true)')
	read_parser.add_argument('--env-prefix', dest='env_prefix', default='', help='Prefix for env var name')
	read_parser.add_argument('--env', default='', help='Environment variable name')

	# Command: create
	create_parser = subparsers.add_parser(
		'create', parents=[common], help='Create a new parameter')
	create_parser.add_argument('--path', required=True, help='Parameter path')
	create_parser.add_argument('--value', required=True, help='Parameter value')
	create_parser.add_argument('--type', default='String', help='Parameter type (String or SecureString)')
	create_parser.add_argument('--description', default='', help='Parameter description')
	create_parser.add_argument('--kms', default='', help='KMS key ID for SecureString parameters')
	_addTargetFlags(create_parser)
	create_parser.add_argument(
		'--overwrite', nargs='?', const=True, default=False, type=parseBool,
		help='Overwrite an existing parameter')

	# Command: modify
	modify_parser = subparsers.add_parser(
		'modify', parents=[common], help='Modify an existing parameter')
	modify_parser.add_argument('--path', required=True, help='Parameter path')
	modify_parser.add_argument('--value', required=True, help='New parameter value')
	modify_parser.add_argument('--description', default='', help='New parameter description')
	_addTargetFlags(modify_parser)

	# Command: delete
	delete_parser = subparsers.add_parser(
		'delete', parents=[common], help='Delete a parameter')
	delete_parser.add_argument('--path', required=True, help='Parameter path')
	_addTargetFlags(delete_parser)

	return parser

# END: Arguments ............................................................. #

# START: Functions | Output .................................................. #
def formatEnvName(path, env_name='', prefix='', upper=True):
	name = env_name or path.rstrip('/').rsplit('/', 1)[-1]
	if prefix:
		name = prefix + '_' + name
	if upper:
		name = name.upper()
	return name


def formatExport(name, value):
	# JSON string escaping keeps quotes and newlines in the value shell-safe
	return 'export {0}={1}\n'.format(name, json.dumps(value, ensure_ascii=False))


def writeOutputFile(path, content):
	"""Create-or-truncate ``path`` owner-only, then write ``content`` in one go."""
	directory = os.path.dirname(path)
	try:
		if directory:
			os.makedirs(directory, mode=DIR_MODE, exist_ok=True)
		fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
		with os.fdopen(fd, 'w', encoding='utf-8') as handle:
			# O_CREAT's mode is ignored when the file already existed
			os.fchmod(handle.fileno(), FILE_MODE)
			handle.write(content)
	except OSError as e:
		raise OutputError('failed to write to file {0}: {1}'.format(sanitizeForLog(path), e)) from e


def _outputMode(param, cfg, file_path, forced_file):
	if forced_file:
		return 'file'
	mode = param.output or cfg.output or ('file' if file_path else 'env')
	if mode not in OUTPUT_MODES:
		raise ValidationError(
			"invalid output format {0!r} for parameter {1} (must be 'env' or 'file')".format(mode, param.name)
		)
	if mode == 'file' and not file_path:
		raise ValidationError('output mode file requires a file path (--file or config file)')
	return mode

# END: Functions | Output .................................................... #

# START: Functions | Commands ................................................ #
def runRead(args, cfg, coordinator):
	role = args.role or cfg.role
	prefix = args.env_prefix or cfg.env_prefix
	file_path = args.file or cfg.file
	if args.upper is not None:
		upper = args.upper
	elif cfg.upper is not None:
		upper = cfg.upper
	else:
		upper = True

	# An explicit path wins over the params list from config
	if args.path:
		params = [ParamConfig(name=args.path, env=args.env)]
	elif cfg.params:
		params = list(cfg.params)
	else:
		raise ValidationError('required flag "path" not set')

	modes = [_outputMode(param, cfg, file_path, bool(args.file)) for param in params]
	results = coordinator.read(params, args.region, cfg.region, role)

	env_lines = []
	file_lines = []
	for (param, region, value), mode in zip(results, modes):
		line = formatExport(formatEnvName(param.name, param.env, prefix, upper), value)
		if mode == 'file':
			print("Reading parameter '{0}' from region '{1}'".format(param.name, region))
			file_lines.append(line)
		else:
			env_lines.append(line)

	if file_lines:
		writeOutputFile(file_path, ''.join(file_lines))
		print('Parameter value written to {0}'.format(file_path))
	if env_lines:
		sys.stdout.write(''.join(env_lines))


def _requireValue(args):
	if not args.value:
		raise ValidationError('required flag "value" not set')


def runCreate(args, cfg, coordinator):
	_requireValue(args)
	coordinator.create(
		args.path,
		args.value,
		param_type=args.type,
		description=args.description,
		kms=args.kms or cfg.kms,
		region=args.region,
		config_region=cfg.region,
		replica=args.replica or cfg.replica,
		role=args.role or cfg.role,
		overwrite=args.overwrite,
	)


def runModify(args, cfg, coordinator):
	_requireValue(args)
	coordinator.modify(
		args.path,
		args.value,
		description=args.description,
		region=args.region,
		config_region=cfg.region,
		replica=args.replica or cfg.replica,
		role=args.role or cfg.role,
	)


def runDelete(args, cfg, coordinator):
	coordinator.delete(
		args.path,
		region=args.region,
		config_region=cfg.region,
		replica=args.replica or cfg.replica,
		role=args.role or cfg.role,
	)


COMMANDS = {
	'read': runRead,
	'create': runCreate,
	'modify': runModify,
	'delete': runDelete,
}

# END: Functions | Commands .................................................. #

# START: Main ................................................................ #
def main(argv=None, client_factory=None, resolver=None):
	parser = buildParser()
	args = ParsedArgs.fromNamespace(parser.parse_args(argv))
	initLogging(args.loglevel)

	if args.version:
		print('params2env version {0} (commit {1}, built on {2})'.format(VERSION, COMMIT, DATE))
		return 0
	if not args.command:
		parser.print_help()
		return 0

	coordinator = ParameterCoordinator(client_factory or Boto3ClientFactory())
	resolver = resolver or ConfigResolver()

	try:
		cfg = resolver.resolve()
		COMMANDS[args.command](args, cfg, coordinator)
	except Params2EnvError as e:
		logger.error('Error executing command: %s', sanitizeForLog(e))
		return 1
	except KeyboardInterrupt:
		logger.info('Interrupted by user.')
		return 130

	return 0


if __name__ == '__main__':
	sys.exit(main())
