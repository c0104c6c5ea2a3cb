# (c) Copyright Datacraft, 2026
"""Logging setup from a YAML dictConfig file."""
import logging
from logging.config import dictConfig

import yaml

from wsdscan.config.settings import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> bool:
	"""
	Apply the YAML logging config if there is one.

	Returns:
		True if the YAML file was applied, False on the basicConfig fallback
	"""
	settings = settings or get_settings()
	path = settings.log_config
	if path is not None and path.exists() and path.is_file():
		with open(path, "r") as stream:
			config = yaml.load(stream, Loader=yaml.FullLoader)

		dictConfig(config)
		return True

	logging.basicConfig(
		level=settings.log_level.upper(),
		format='%(asctime)s %(levelname)s %(name)s: %(message)s',
	)
	return False
