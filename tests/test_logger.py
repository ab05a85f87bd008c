import io
import logging

import colorama

from params2env_logger import ColoredFormatter, initLogging, parseLevel


def test_parse_level():
	assert parseLevel('debug') == logging.DEBUG
	assert parseLevel('WARN') == logging.WARNING
	assert parseLevel('error') == logging.ERROR
	assert parseLevel('verbose') == logging.INFO
	assert parseLevel(None) == logging.INFO


def test_plain_output_when_not_a_tty():
	stream = io.StringIO()
	initLogging('warn', stream=stream)

	logging.getLogger('params2env.test').info('hidden')
	logging.getLogger('params2env.test').warning('shown key=%s', 'value')

	assert stream.getvalue() == 'WARNING shown key=value\n'


def test_reinit_replaces_own_handler():
	first = io.StringIO()
	second = io.StringIO()
	initLogging('info', stream=first)
	initLogging('info', stream=second)

	logging.getLogger('params2env.test').info('once')

	assert first.getvalue() == ''
	assert second.getvalue() == 'INFO once\n'


def test_colored_formatter():
	formatter = ColoredFormatter('%(levelname)s %(message)s')
	record = logging.LogRecord('x', logging.ERROR, __file__, 1, 'boom', None, None)

	line = formatter.format(record)

	assert line.startswith(colorama.Fore.LIGHTRED_EX)
	assert line.endswith(colorama.Style.RESET_ALL)
	assert 'ERROR boom' in line
