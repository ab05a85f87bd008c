#!/usr/bin/env python3

import logging
import sys

import colorama

# START: Preparation > Globals ............................................... #
LEVELS = {
	'debug': logging.DEBUG,
	'info': logging.INFO,
	'warn': logging.WARNING,
	'error': logging.ERROR,
}

LEVEL_COLORS = {
	logging.DEBUG: colorama.Style.DIM,
	logging.INFO: colorama.Fore.CYAN,
	logging.WARNING: colorama.Fore.YELLOW,
	logging.ERROR: colorama.Fore.LIGHTRED_EX,
	logging.CRITICAL: colorama.Style.BRIGHT + colorama.Fore.RED,
}

# END: Preparation > Globals ................................................. #

class ColoredFormatter(logging.Formatter):
	def __init__(self, fmt, use_colors=True):
		super().__init__(fmt)
		self.use_colors = use_colors

	def format(self, record):
		line = super().format(record)
		if not self.use_colors:
			return line
		color = LEVEL_COLORS.get(record.levelno, '')
		return color + line + colorama.Style.RESET_ALL


def parseLevel(level):
	# Unknown levels fall back to info
	return LEVELS.get(str(level or '').lower(), logging.INFO)


def initLogging(level='info', stream=None):
	stream = stream if stream is not None else sys.stderr
	use_colors = hasattr(stream, 'isatty') and stream.isatty()
	if use_colors:
		colorama.just_fix_windows_console()

	handler = logging.StreamHandler(stream)
	handler.setFormatter(ColoredFormatter('%(levelname)s %(message)s', use_colors=use_colors))
	handler.params2env = True

	# Replace only a handler installed by an earlier call
	root = logging.getLogger()
	for old in list(root.handlers):
		if getattr(old, 'params2env', False):
			root.removeHandler(old)
	root.addHandler(handler)
	root.setLevel(parseLevel(level))

	# botocore is chatty at debug
	logging.getLogger('botocore').setLevel(max(root.level, logging.INFO))
	logging.getLogger('urllib3').setLevel(max(root.level, logging.INFO))
	return root
