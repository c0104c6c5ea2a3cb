# (c) Copyright Datacraft, 2026
"""Tests for the command line front end."""
import pytest
from PIL import Image

from wsdscan import cli
from wsdscan.scanner.backend import Backend

URL = 'http://192.168.1.20:5358/wsd/scan'


@pytest.fixture
def patch_backend(monkeypatch, fake_client):
	"""Route every backend client to the fake client."""
	def make_backend(settings):
		return Backend(settings, client_factory=lambda url: fake_client)

	monkeypatch.setattr(cli, 'Backend', make_backend)
	monkeypatch.setenv('WSDSCAN_LOG_LEVEL', 'WARNING')
	return fake_client


class TestCli:
	"""Tests for the wsdscan command."""

	def test_list(self, patch_backend, capsys):
		"""Test list prints one line per device."""
		assert cli.main(['list', URL]) == 0
		out = capsys.readouterr().out
		assert out.strip() == f"{URL}\tunknown\tAcme ScanJet\tOffice scanner"

	def test_options(self, patch_backend, capsys):
		"""Test options prints the option table."""
		assert cli.main(['options', URL]) == 0
		out = capsys.readouterr().out
		assert '#3 resolution = 600 (600|300) dpi' in out
		assert 'Image quality:' in out
		assert '[inactive]' in out

	def test_scan(self, patch_backend, tmp_path):
		"""Test scan writes the decoded image."""
		patch_backend.set_statuses(('Idle',), ('Processing',))
		output = tmp_path / 'page.png'
		assert cli.main(['scan', URL, '-o', str(output), '--depth', '8', '--chunk-size', '500']) == 0
		with Image.open(output) as image:
			assert image.size == (40, 30)
			assert image.mode == 'RGB'
		assert patch_backend.tickets[0].color_depth == 8

	def test_scan_error(self, patch_backend, tmp_path, capsys):
		"""Test scan errors exit with status 1."""
		patch_backend.set_statuses(('Processing',))
		assert cli.main(['scan', URL, '-o', str(tmp_path / 'page.png')]) == 1
		assert 'busy' in capsys.readouterr().err

	def test_invalid_option_value(self, patch_backend, tmp_path):
		"""Test an out-of-range option fails the scan."""
		assert cli.main(['scan', URL, '-o', str(tmp_path / 'page.png'), '--resolution', '1200']) == 1
