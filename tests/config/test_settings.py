# (c) Copyright Datacraft, 2026
"""Tests for settings and logging setup."""
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from wsdscan.config.settings import Settings, get_settings, reset_settings
from wsdscan.log_config import configure_logging


class TestSettings:
	"""Tests for Settings."""

	def test_defaults(self, monkeypatch):
		"""Test default values."""
		monkeypatch.chdir('/')
		settings = Settings(_env_file=None)
		assert settings.config_file == Path('/etc/sane.d/wsd-scan.conf')
		assert settings.request_timeout == 30.0
		assert settings.retrieve_timeout == 120.0
		assert settings.job_name == 'scanjob'
		assert settings.requesting_user == 'sane'
		assert settings.document_format == 'jfif'
		assert settings.content_type == 'Auto'
		assert not settings.dump_messages

	def test_environment(self, monkeypatch):
		"""Test values come from WSDSCAN_ variables."""
		monkeypatch.setenv('WSDSCAN_REQUEST_TIMEOUT', '5')
		monkeypatch.setenv('WSDSCAN_CONFIG_FILE', '/tmp/devices.conf')
		settings = Settings(_env_file=None)
		assert settings.request_timeout == 5.0
		assert settings.config_file == Path('/tmp/devices.conf')

	def test_timeout_must_be_positive(self):
		"""Test non-positive timeouts are rejected."""
		with pytest.raises(ValidationError):
			Settings(request_timeout=0, _env_file=None)

	def test_singleton(self):
		"""Test get_settings caches until reset."""
		first = get_settings()
		assert get_settings() is first
		reset_settings()
		assert get_settings() is not first


class TestConfigureLogging:
	"""Tests for configure_logging."""

	def test_yaml_config(self, tmp_path):
		"""Test a YAML file is applied with dictConfig."""
		path = tmp_path / 'logging.yaml'
		path.write_text(
			'version: 1\n'
			'disable_existing_loggers: false\n'
			'loggers:\n'
			'  wsdscan.test_logging:\n'
			'    level: ERROR\n'
		)
		settings = Settings(log_config=path, _env_file=None)
		assert configure_logging(settings)
		assert logging.getLogger('wsdscan.test_logging').level == logging.ERROR

	def test_fallback(self, tmp_path):
		"""Test a missing file falls back to basicConfig."""
		settings = Settings(log_config=tmp_path / 'absent.yaml', _env_file=None)
		assert not configure_logging(settings)
