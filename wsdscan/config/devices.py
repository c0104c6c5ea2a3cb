# (c) Copyright Datacraft, 2026
"""Device list file parsing."""
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

URL_DIRECTIVE = 'url'


def parse_device_urls(lines) -> list[str]:
	"""
	Extract device addresses from configuration lines.

	Args:
		lines: Iterable of text lines

	Returns:
		Device URLs in file order, without duplicates
	"""
	urls: list[str] = []
	for number, raw in enumerate(lines, start=1):
		line = raw.strip()
		if not line or line.startswith('#'):
			continue
		directive, _, rest = line.partition(' ')
		if directive != URL_DIRECTIVE:
			logger.debug(f"Ignoring line {number}: '{line}'")
			continue
		tokens = rest.split()
		if not tokens:
			logger.warning(f"Line {number}: url directive without address")
			continue
		url = tokens[0]
		if url in urls:
			continue
		logger.info(f"wsd-scan device '{url}'")
		urls.append(url)
	return urls


def load_device_urls(path: Path) -> list[str]:
	"""Read the device list file, an absent file means no devices."""
	if not path.is_file():
		logger.info(f"No config file at {path}, device list is empty")
		return []
	logger.info(f"Reading config file {path}")
	with open(path, "r", encoding="utf-8") as stream:
		return parse_device_urls(stream)
