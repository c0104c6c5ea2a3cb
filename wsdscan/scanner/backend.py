# (c) Copyright Datacraft, 2026
"""Device registry and the backend entry points."""
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from wsdscan.config.devices import load_device_urls
from wsdscan.config.settings import Settings, get_settings

from .base import DeviceDescriptor
from .document import ResponseDocument
from .errors import DeviceBusyError, InvalidError, ScanError
from .session import ScannerSession
from .transport import WSDClient

logger = logging.getLogger(__name__)


ClientFactory = Callable[[str], WSDClient]


@dataclass
class DeviceRecord:
	"""One configured device."""
	url: str
	descriptor: DeviceDescriptor | None = None
	session: ScannerSession | None = None

	@property
	def is_open(self) -> bool:
		return self.session is not None


def parse_description(url: str, doc: ResponseDocument) -> DeviceDescriptor:
	"""Build a device descriptor from a ScannerDescription response."""
	description = doc.find('ScannerDescription')
	model = doc.text('ScannerName', parent=description)
	info = doc.text('ScannerInfo', parent=description)
	if model:
		logger.info(f"ScannerName:{model}")
	if info:
		logger.info(f"ScannerInfo:{info}")
	return DeviceDescriptor(
		identifier=url,
		model=model or 'unknown',
		type=info or 'scanner',
	)


class Backend:
	"""
	Registry of configured WS-Scan devices.

	Devices come from the device list file (or an explicit URL list) and
	stay registered until exit(). Each device can be open in at most one
	session.
	"""

	def __init__(
		self,
		settings: Settings | None = None,
		client_factory: ClientFactory | None = None,
	):
		self._settings = settings or get_settings()
		self._client_factory = client_factory or self._create_client
		self._devices: list[DeviceRecord] = []

	def _create_client(self, url: str) -> WSDClient:
		return WSDClient(
			url,
			timeout=self._settings.request_timeout,
			retrieve_timeout=self._settings.retrieve_timeout,
			verify_ssl=self._settings.verify_ssl,
			user_agent=self._settings.user_agent,
			dump_messages=self._settings.dump_messages,
		)

	@property
	def devices(self) -> list[DeviceRecord]:
		return list(self._devices)

	def init(self, urls: Iterable[str] | None = None) -> int:
		"""
		Populate the registry.

		Args:
			urls: device URLs, read from the device list file if None

		Returns:
			Number of registered devices
		"""
		if urls is None:
			urls = load_device_urls(self._settings.config_file)
		for url in urls:
			if self._find(url) is not None:
				continue
			self._devices.append(DeviceRecord(url=url))
		logger.info(f"Backend initialised with {len(self._devices)} device(s)")
		return len(self._devices)

	def enumerate_devices(self) -> list[DeviceDescriptor]:
		"""Describe every reachable device, skipping those that fail."""
		descriptors = []
		for record in self._devices:
			logger.info(f"Querying description of '{record.url}'")
			try:
				with self._client_factory(record.url) as client:
					doc = client.get_scanner_description()
			except ScanError as e:
				logger.error(f"Description of '{record.url}' failed: {e}")
				continue
			record.descriptor = parse_description(record.url, doc)
			descriptors.append(record.descriptor)
		logger.info(f"Found {len(descriptors)} scanner(s)")
		return descriptors

	def open(self, identifier: str) -> ScannerSession:
		"""
		Open a device, an empty identifier opens the first one.

		Raises:
			InvalidError: no such device
			DeviceBusyError: device already open
			ScanIOError: configuration query failed
		"""
		record = self._find(identifier)
		if record is None:
			logger.error(f"No scanner matches '{identifier}'")
			raise InvalidError(f"No scanner matches '{identifier}'")
		if record.is_open:
			raise DeviceBusyError(f"Scanner '{record.url}' is already open")

		client = self._client_factory(record.url)
		record.session = ScannerSession.open(
			record.url,
			client,
			self._settings,
			on_close=self._on_session_closed,
		)
		return record.session

	def close(self, session: ScannerSession):
		session.close()

	def exit(self):
		"""Close open sessions and clear the registry."""
		for record in self._devices:
			if record.session is not None:
				record.session.close()
		self._devices.clear()
		logger.info("Backend exited")

	def _find(self, identifier: str) -> DeviceRecord | None:
		if not identifier:
			return self._devices[0] if self._devices else None
		for record in self._devices:
			if record.url == identifier:
				return record
		return None

	def _on_session_closed(self, session: ScannerSession):
		for record in self._devices:
			if record.session is session:
				record.session = None
