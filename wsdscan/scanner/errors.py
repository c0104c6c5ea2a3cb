# (c) Copyright Datacraft, 2026
"""Scanner status codes and the exceptions that carry them."""
from enum import Enum


class ScanStatus(str, Enum):
	"""Status codes a consumer can observe."""
	GOOD = 'good'
	BUSY = 'busy'
	NO_DOCUMENTS = 'no_documents'
	JAMMED = 'jammed'
	INVALID = 'invalid'
	NO_MEMORY = 'no_memory'
	IO_ERROR = 'io_error'
	EOF = 'eof'
	UNSUPPORTED = 'unsupported'


class ScanError(Exception):
	"""Base class for all scanner errors."""

	status: ScanStatus = ScanStatus.IO_ERROR

	def __init__(self, message: str = '', status: ScanStatus | None = None):
		if status is not None:
			self.status = status
		super().__init__(message or self.status.value)


class DeviceBusyError(ScanError):
	"""Device or session is occupied by a scan job."""
	status = ScanStatus.BUSY


class NoDocumentsError(ScanError):
	"""Input tray is empty."""
	status = ScanStatus.NO_DOCUMENTS


class JammedError(ScanError):
	"""Media jam reported by the device."""
	status = ScanStatus.JAMMED


class InvalidError(ScanError):
	"""Bad argument, unknown option or malformed data."""
	status = ScanStatus.INVALID


class InactiveOptionError(InvalidError):
	"""Option exists but is not active for this device."""
	pass


class ConstraintError(InvalidError):
	"""Value does not satisfy the option constraint."""
	pass


class ConfigurationInvalidError(InvalidError):
	"""Capability document lacks a mandatory field."""
	pass


class InvalidResponseError(InvalidError):
	"""Response document has an unexpected shape."""
	pass


class DecodeError(InvalidError):
	"""Image payload could not be decoded."""
	pass


class NoMemoryError(ScanError):
	"""Allocation failure while building a buffer."""
	status = ScanStatus.NO_MEMORY


class ScanIOError(ScanError):
	"""Transport or protocol fault."""
	status = ScanStatus.IO_ERROR


class TransportError(ScanIOError):
	"""Request could not be completed by the transport."""

	def __init__(self, message: str, cause: Exception | None = None):
		self.cause = cause
		super().__init__(message)


class UnsupportedError(ScanError):
	"""Feature intentionally not offered."""
	status = ScanStatus.UNSUPPORTED


_STATUS_ERRORS: dict[ScanStatus, type[ScanError]] = {
	ScanStatus.BUSY: DeviceBusyError,
	ScanStatus.NO_DOCUMENTS: NoDocumentsError,
	ScanStatus.JAMMED: JammedError,
	ScanStatus.INVALID: InvalidError,
	ScanStatus.NO_MEMORY: NoMemoryError,
	ScanStatus.IO_ERROR: ScanIOError,
	ScanStatus.UNSUPPORTED: UnsupportedError,
}


def error_for_status(status: ScanStatus, message: str = '') -> ScanError:
	"""Build the exception matching a non-good status."""
	if status in (ScanStatus.GOOD, ScanStatus.EOF):
		raise ValueError(f"{status.value} is not an error status")
	return _STATUS_ERRORS[status](message)
