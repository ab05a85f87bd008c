"""
Shared fixtures: an in-memory parameter store and client factory.

Every call is recorded on ``FakeClientFactory.calls`` so tests can assert on
ordering and on "no network call happened".
"""

import logging

import pytest

from params2env_errors import AlreadyExistsError, ClientError, NotFoundError


class FakeStore:
	def __init__(self, factory, region, role):
		self.factory = factory
		self.region = region
		self.role = role

	def _fail(self, op):
		error = self.factory.failures.get((self.region, op))
		if error is not None:
			raise error

	def get(self, path):
		self.factory.calls.append(('get', self.region, path))
		self._fail('get')
		try:
			return self.factory.values[(self.region, path)]
		except KeyError:
			raise NotFoundError('parameter {0} not found'.format(path))

	def put(self, path, value, param_type=None, kms_key=None, overwrite=False, description=None):
		self.factory.calls.append(('put', self.region, path, value, param_type, kms_key, overwrite, description))
		self._fail('put')
		if (self.region, path) in self.factory.values and not overwrite:
			raise AlreadyExistsError('parameter {0} already exists'.format(path))
		self.factory.values[(self.region, path)] = value

	def delete(self, path):
		self.factory.calls.append(('delete', self.region, path))
		self._fail('delete')
		if (self.region, path) not in self.factory.values:
			raise NotFoundError('parameter {0} not found'.format(path))
		del self.factory.values[(self.region, path)]


class FakeClientFactory:
	def __init__(self, values=None, failures=None, client_failures=()):
		self.values = dict(values or {})
		self.failures = dict(failures or {})
		self.client_failures = set(client_failures)
		self.calls = []

	def newClient(self, region, role=None):
		self.calls.append(('client', region, role))
		if region in self.client_failures:
			raise ClientError('failed to create AWS client for region {0}'.format(region))
		return FakeStore(self, region, role)

	def ops(self):
		return [call for call in self.calls if call[0] != 'client']


@pytest.fixture
def factory():
	return FakeClientFactory()


@pytest.fixture
def no_aws_region(monkeypatch):
	monkeypatch.delenv('AWS_REGION', raising=False)


@pytest.fixture
def make_factory():
	return FakeClientFactory


@pytest.fixture(autouse=True)
def _drop_cli_log_handler():
	yield
	# main() attaches a stderr handler bound to the capture stream of one test
	root = logging.getLogger()
	for handler in list(root.handlers):
		if getattr(handler, 'params2env', False):
			root.removeHandler(handler)
