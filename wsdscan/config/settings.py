# (c) Copyright Datacraft, 2026
"""Application settings configuration."""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	# Device list, one "url <address>" per line
	config_file: Path = Path("/etc/sane.d/wsd-scan.conf")

	# Logging
	log_config: Path | None = None
	log_level: str = 'INFO'
	dump_messages: bool = False

	# Transport
	request_timeout: float = Field(gt=0, default=30.0)
	retrieve_timeout: float = Field(gt=0, default=120.0)
	verify_ssl: bool = True
	user_agent: str = 'wsdscan/1.0'

	# Scan ticket
	job_name: str = 'scanjob'
	requesting_user: str = 'sane'
	document_name: str = 'sane.wsd-scan'
	document_format: str = 'jfif'
	content_type: str = 'Auto'

	model_config = SettingsConfigDict(
		env_prefix='wsdscan_',
		env_file='.env',
		env_file_encoding='utf-8',
		extra='ignore',
	)


_settings: Settings | None = None


def get_settings() -> Settings:
	global _settings
	if _settings is None:
		_settings = Settings()
	return _settings


def reset_settings() -> None:
	global _settings
	_settings = None
