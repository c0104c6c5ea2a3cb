# (c) Copyright Datacraft, 2026
"""WS-Scan protocol engine: capabilities, options, jobs and streaming reads."""
from .backend import Backend, DeviceRecord
from .base import DeviceDescriptor, FrameFormat, JobState, RasterDescriptor, ScanJob, ScanTicket
from .capabilities import ColorMode, InputSource, ScanArea, ScannerCapabilities
from .decode import DecodedImage, decode_image
from .errors import (
	ConfigurationInvalidError,
	ConstraintError,
	DecodeError,
	DeviceBusyError,
	InactiveOptionError,
	InvalidError,
	InvalidResponseError,
	JammedError,
	NoDocumentsError,
	NoMemoryError,
	ScanError,
	ScanIOError,
	ScanStatus,
	TransportError,
	UnsupportedError,
)
from .job import ScanJobController, map_scanner_status
from .options import OptionDescriptor, OptionIndex, OptionTable, ReloadFlags
from .session import ScannerSession
from .stream import StreamingBuffer
from .transport import WSDClient

__all__ = [
	'Backend',
	'DeviceRecord',
	'DeviceDescriptor',
	'FrameFormat',
	'JobState',
	'RasterDescriptor',
	'ScanJob',
	'ScanTicket',
	'ColorMode',
	'InputSource',
	'ScanArea',
	'ScannerCapabilities',
	'DecodedImage',
	'decode_image',
	'ConfigurationInvalidError',
	'ConstraintError',
	'DecodeError',
	'DeviceBusyError',
	'InactiveOptionError',
	'InvalidError',
	'InvalidResponseError',
	'JammedError',
	'NoDocumentsError',
	'NoMemoryError',
	'ScanError',
	'ScanIOError',
	'ScanStatus',
	'TransportError',
	'UnsupportedError',
	'ScanJobController',
	'map_scanner_status',
	'OptionDescriptor',
	'OptionIndex',
	'OptionTable',
	'ReloadFlags',
	'ScannerSession',
	'StreamingBuffer',
	'WSDClient',
]
