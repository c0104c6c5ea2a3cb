# (c) Copyright Datacraft, 2026
"""Configuration module for wsdscan."""
from .devices import load_device_urls, parse_device_urls
from .settings import Settings, get_settings, reset_settings

__all__ = [
	'Settings',
	'get_settings',
	'reset_settings',
	'load_device_urls',
	'parse_device_urls',
]
