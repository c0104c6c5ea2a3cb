# (c) Copyright Datacraft, 2026
"""Chunked, pull-based access to a decoded raster."""
import logging

logger = logging.getLogger(__name__)


class StreamingBuffer:
	"""
	Decoded image plus a read cursor.

	Owned by exactly one session; reads hand out bounded chunks until
	the cursor reaches the end, after which the buffer is released.
	"""

	def __init__(self, data: bytes):
		self._data: memoryview | None = memoryview(data)
		self._size = len(data)
		self._offset = 0

	@property
	def size(self) -> int:
		return self._size

	@property
	def remaining(self) -> int:
		return self._size - self._offset

	@property
	def exhausted(self) -> bool:
		return self.remaining == 0

	@property
	def released(self) -> bool:
		return self._data is None

	def read(self, max_bytes: int) -> bytes:
		"""Return up to max_bytes and advance the cursor."""
		if self._data is None:
			return b''
		size = min(max_bytes, self.remaining)
		chunk = bytes(self._data[self._offset:self._offset + size])
		self._offset += size
		logger.debug(f"Copying {size} bytes, {self.remaining} remaining")
		return chunk

	def release(self):
		"""Drop the image data."""
		if self._data is not None:
			self._data.release()
			self._data = None
			self._offset = self._size

	def __len__(self) -> int:
		return self.remaining

	def __repr__(self):
		return f"{self.__class__.__name__}({self.remaining}/{self._size} bytes)"
