# (c) Copyright Datacraft, 2026
"""
Per-device scan session.

A session owns everything one open device needs: the option table built
from the device capabilities, the job controller, the streaming buffer
and the scanning flag. Nothing is shared between sessions.
"""
import logging
from typing import Any, Callable, Iterator

from wsdscan.config.settings import Settings, get_settings

from .base import RasterDescriptor
from .capabilities import MM_PER_INCH, ScannerCapabilities
from .errors import (
	DeviceBusyError,
	InvalidError,
	ScanError,
	ScanIOError,
	UnsupportedError,
)
from .job import ScanJobController, build_ticket
from .options import OptionDescriptor, OptionIndex, OptionTable, ReloadFlags
from .stream import StreamingBuffer
from .transport import WSDClient

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32768


def estimate_raster(options: OptionTable, caps: ScannerCapabilities) -> RasterDescriptor:
	"""Predict the raster from current option values, 0 width/height is full extent."""
	resolution = options.value(OptionIndex.RESOLUTION)
	width = options.value(OptionIndex.WIDTH) or caps.area.max_width
	height = options.value(OptionIndex.HEIGHT) or caps.area.max_height
	pixels_per_line = round(width / MM_PER_INCH * resolution)
	lines = round(height / MM_PER_INCH * resolution)
	return RasterDescriptor.for_color_depth(
		options.value(OptionIndex.COLOR),
		pixels_per_line,
		lines,
	)


class ScannerSession:
	"""Handle of one opened device."""

	def __init__(
		self,
		identifier: str,
		client: WSDClient,
		caps: ScannerCapabilities,
		settings: Settings | None = None,
		on_close: Callable[["ScannerSession"], None] | None = None,
	):
		self.identifier = identifier
		self._client = client
		self._caps = caps
		self._settings = settings or get_settings()
		self._on_close = on_close
		self._options = OptionTable.build(caps)
		self._controller = ScanJobController(client, self._settings)
		self._buffer: StreamingBuffer | None = None
		self._raster: RasterDescriptor | None = None
		self._scanning = False
		self._closed = False

	@classmethod
	def open(
		cls,
		identifier: str,
		client: WSDClient,
		settings: Settings | None = None,
		on_close: Callable[["ScannerSession"], None] | None = None,
	) -> "ScannerSession":
		"""
		Query the device configuration and build a session from it.

		The client is closed if the session cannot be built.

		Raises:
			TransportError: configuration query failed
			ConfigurationInvalidError: capability document incomplete
		"""
		logger.info(f"Opening {identifier}")
		try:
			doc = client.get_scanner_configuration()
			caps = ScannerCapabilities.from_wsd(doc)
		except ScanError:
			client.close()
			raise
		return cls(identifier, client, caps, settings, on_close)

	def __repr__(self):
		return f"{self.__class__.__name__}({self.identifier})"

	def __enter__(self):
		return self

	def __exit__(self, *args):
		self.close()

	@property
	def capabilities(self) -> ScannerCapabilities:
		return self._caps

	@property
	def options(self) -> OptionTable:
		return self._options

	@property
	def scanning(self) -> bool:
		return self._scanning

	@property
	def closed(self) -> bool:
		return self._closed

	# Options

	def _check_idle(self):
		if self._scanning or self._controller.is_live:
			logger.error("Option access while scanning")
			raise DeviceBusyError("Options cannot be accessed while scanning")

	def get_option_count(self) -> int:
		return self._options.value(OptionIndex.NUM_OPTS)

	def get_option_descriptor(self, index: int) -> OptionDescriptor | None:
		return self._options.descriptor(index)

	def get_option_value(self, index: int) -> Any:
		self._check_idle()
		return self._options.get(index)

	def set_option_value(self, index: int, value: Any) -> ReloadFlags:
		"""
		Set an option, rejected while scanning.

		Returns:
			Reload flags the caller has to honour
		"""
		self._check_idle()
		return self._options.set(index, value)

	# Scanning

	def start(self):
		"""
		Create a scan job from the current option values.

		Raises:
			DeviceBusyError: scan in progress or device busy
			NoDocumentsError: input tray empty
			JammedError: media jam
			ScanIOError: job creation failed
		"""
		if self._scanning:
			raise DeviceBusyError("Scan already in progress")
		ticket = build_ticket(self._options, self._caps, self._settings)
		self._controller.start(ticket)
		self._release_buffer()
		self._raster = None
		self._scanning = True

	def get_parameters(self) -> RasterDescriptor:
		"""
		Raster of the current scan.

		The decoded raster once the image is retrieved, the one reported
		at job creation before that, otherwise an estimate from the options.
		"""
		if self._scanning:
			if self._raster is not None:
				return self._raster
			job = self._controller.job
			if job is not None:
				return job.raster
		return estimate_raster(self._options, self._caps)

	def read(self, max_bytes: int) -> bytes:
		"""
		Return up to max_bytes of raster data.

		Returns:
			Next chunk, b'' at end of stream

		Raises:
			ScanIOError: not scanning, or retrieval failed
			InvalidError: max_bytes not positive, or invalid image data
			NoMemoryError: raster buffer could not be allocated
		"""
		if not self._scanning:
			logger.error("Read while not scanning")
			raise ScanIOError("Not scanning")
		if max_bytes <= 0:
			raise InvalidError(f"Invalid read size {max_bytes}")

		if self._buffer is None:
			logger.info("No image data, checking status")
			try:
				image = self._controller.retrieve()
			except ScanError:
				self._scanning = False
				raise
			self._buffer = StreamingBuffer(image.data)
			self._raster = image.raster

		if self._buffer.released:
			logger.info("EOF")
			self._scanning = False
			return b''

		chunk = self._buffer.read(max_bytes)
		if self._buffer.exhausted:
			self._buffer.release()
		return chunk

	def iter_read(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
		"""Yield chunks until end of stream."""
		while True:
			chunk = self.read(chunk_size)
			if not chunk:
				return
			yield chunk

	def cancel(self):
		"""Cancel the current scan, local state is always cleared."""
		if self._scanning or self._controller.is_live:
			logger.info(f"Cancel scan on {self.identifier}")
		self._controller.cancel()
		self._release_buffer()
		self._raster = None
		self._scanning = False

	def set_io_mode(self, non_blocking: bool):
		if non_blocking:
			raise UnsupportedError("Non-blocking I/O is not supported")

	def get_select_fd(self) -> int:
		raise UnsupportedError("Select file descriptor not supported (only for non-blocking I/O)")

	def close(self):
		"""Cancel any scan and close the transport."""
		if self._closed:
			return
		logger.info(f"Closing {self.identifier}")
		self.cancel()
		self._client.close()
		self._closed = True
		if self._on_close is not None:
			self._on_close(self)

	def _release_buffer(self):
		if self._buffer is not None:
			self._buffer.release()
			self._buffer = None
