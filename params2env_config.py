#!/usr/bin/env python3
"""
Layered configuration for params2env.

Two optional YAML documents named ``.params2env.yaml`` are read: one in the
user's home directory (global) and one in the working directory (local). The
local document is merged field by field on top of the global one; command-line
flags are applied later by each command handler and always win.

Loading is fail-fast: a file that exists but cannot be read, parsed or
validated aborts resolution with a ``ConfigError``. A partially understood
configuration is never returned.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from params2env_errors import ConfigError, ConfigErrorKind, sanitizeForLog

logger = logging.getLogger(__name__)

# START: Preparation > Globals ............................................... #
CONFIG_FILENAME = '.params2env.yaml'
OUTPUT_MODES = ('env', 'file')

# Merged by "non-empty local value wins"
STRING_FIELDS = ('region', 'replica', 'prefix', 'output', 'file', 'env_prefix', 'role', 'kms')

# END: Preparation > Globals ................................................. #

# START: Models .............................................................. #
class ParamConfig(BaseModel):
	model_config = ConfigDict(frozen=True, extra='ignore')

	name: str = ''
	env: str = ''
	region: str = ''
	output: str = ''

	@field_validator('name', 'env', 'region', 'output', mode='before')
	@classmethod
	def noneIsUnset(cls, value):
		return '' if value is None else value


class Config(BaseModel):
	"""
	Effective settings after merge.

	Empty strings mean "not specified". ``upper`` is tri-state so that an
	explicit ``false`` in the local file can override a global ``true``.
	"""

	model_config = ConfigDict(frozen=True, extra='ignore')

	region: str = ''
	replica: str = ''
	prefix: str = ''
	output: str = ''
	file: str = ''
	upper: Optional[bool] = None
	env_prefix: str = ''
	role: str = ''
	kms: str = ''
	params: Tuple[ParamConfig, ...] = ()

	@field_validator(*STRING_FIELDS, mode='before')
	@classmethod
	def noneIsUnset(cls, value):
		return '' if value is None else value

	@field_validator('params', mode='before')
	@classmethod
	def noneIsEmpty(cls, value):
		return () if value is None else value

# END: Models ................................................................ #

# START: Functions ........................................................... #
def validateConfig(cfg):
	# Every parameter needs a name
	for index, param in enumerate(cfg.params):
		if not param.name:
			raise ValueError('parameter at index {0} missing name'.format(index))

	if cfg.output and cfg.output not in OUTPUT_MODES:
		raise ValueError(
			"invalid output format {0!r} (must be 'env' or 'file')".format(cfg.output)
		)


def loadFile(path):
	"""Read, parse and validate one configuration document."""
	path = Path(path)

	try:
		raw = path.read_text(encoding='utf-8')
	except (OSError, UnicodeDecodeError) as e:
		raise ConfigError(ConfigErrorKind.UNREADABLE, path, e) from e

	try:
		data = yaml.safe_load(raw)
	except yaml.YAMLError as e:
		raise ConfigError(ConfigErrorKind.UNPARSEABLE, path, e) from e

	if data is None:
		data = {}
	if not isinstance(data, dict):
		raise ConfigError(
			ConfigErrorKind.INVALID,
			path,
			'top-level YAML must be a mapping, got: {0}'.format(type(data).__name__),
		)

	# pydantic's ValidationError is a ValueError too
	try:
		cfg = Config.model_validate(data)
		validateConfig(cfg)
	except ValueError as e:
		raise ConfigError(ConfigErrorKind.INVALID, path, e) from e

	logger.debug('Loaded config file=%s', sanitizeForLog(path))
	return cfg


def mergeConfig(global_cfg, local_cfg):
	"""Return a new Config with every "set" local field laid over the global one."""
	updates = {}
	for field in STRING_FIELDS:
		value = getattr(local_cfg, field)
		if value:
			updates[field] = value

	if local_cfg.upper is not None:
		updates['upper'] = local_cfg.upper

	# Lists replace wholesale
	if local_cfg.params:
		updates['params'] = local_cfg.params

	return global_cfg.model_copy(update=updates)

# END: Functions ............................................................. #

# START: Resolver ............................................................ #
class ConfigResolver:
	def __init__(self, home_dir=None, work_dir=None):
		self.home_dir = home_dir
		self.work_dir = work_dir

	def homeConfigPath(self):
		# No home directory is not an error, just no global config
		home = self.home_dir
		if home is None:
			try:
				home = Path.home()
			except (RuntimeError, KeyError):
				logger.debug('Home directory unavailable, skipping global config')
				return None

		home_real = os.path.realpath(home)
		candidate = os.path.realpath(os.path.join(home_real, CONFIG_FILENAME))
		if os.path.commonpath([home_real, candidate]) != home_real:
			logger.warning('Invalid home config path detected path=%s', sanitizeForLog(candidate))
			return None

		return Path(candidate)

	def localConfigPath(self):
		work_dir = self.work_dir if self.work_dir is not None else Path.cwd()
		return Path(work_dir) / CONFIG_FILENAME

	def resolve(self):
		cfg = Config()

		home_path = self.homeConfigPath()
		if home_path is not None and home_path.is_file():
			cfg = loadFile(home_path)

		local_path = self.localConfigPath()
		if local_path.is_file():
			cfg = mergeConfig(cfg, loadFile(local_path))

		return cfg

# END: Resolver .............................................................. #
