# (c) Copyright Datacraft, 2026
"""Scanner data models shared by the job controller and the session."""
import math
from dataclasses import dataclass
from enum import Enum

from .capabilities import InputSource


class FrameFormat(str, Enum):
	"""Pixel format of a raster."""
	GRAY = 'gray'
	RGB = 'rgb'

	@property
	def channels(self) -> int:
		return 3 if self is FrameFormat.RGB else 1


class JobState(str, Enum):
	"""Lifecycle state of the job controller."""
	IDLE = 'idle'
	CREATING = 'creating'
	ACTIVE = 'active'
	RETRIEVING = 'retrieving'
	CANCELLING = 'cancelling'
	ERROR = 'error'


@dataclass(frozen=True)
class DeviceDescriptor:
	"""Description of an enumerated device."""
	identifier: str
	vendor: str = 'unknown'
	model: str = 'unknown'
	type: str = 'scanner'


@dataclass(frozen=True)
class RasterDescriptor:
	"""Geometry and format of the image a job will or did produce."""
	format: FrameFormat
	depth: int  # bits per sample
	pixels_per_line: int
	lines: int
	last_frame: bool = True

	@property
	def bits_per_pixel(self) -> int:
		return self.depth * self.format.channels

	@property
	def bytes_per_line(self) -> int:
		return math.ceil(self.pixels_per_line * self.bits_per_pixel / 8)

	@classmethod
	def for_color_depth(
		cls,
		bits_per_pixel: int,
		pixels_per_line: int,
		lines: int,
	) -> "RasterDescriptor":
		"""
		Predict the raster for a colour processing depth.

		The image is transferred as JPEG and decoded to 8-bit samples, so
		only the channel count depends on the colour depth.

		Raises:
			ValueError: depth is not part of the colour vocabulary
		"""
		if bits_per_pixel in (1, 4, 8, 16):
			fmt = FrameFormat.GRAY
		elif bits_per_pixel in (24, 32, 48, 64):
			fmt = FrameFormat.RGB
		else:
			raise ValueError(f"Strange bits per pixel {bits_per_pixel}")
		return cls(format=fmt, depth=8, pixels_per_line=pixels_per_line, lines=lines)


@dataclass
class ScanTicket:
	"""Job parameters submitted to CreateScanJob."""
	input_source: InputSource = InputSource.PLATEN
	resolution: int = 300  # DPI, used for both axes
	color_depth: int = 24  # bits per pixel

	# Scan area in thousandths of an inch
	width: int = 8500
	height: int = 11000
	x_offset: int = 0
	y_offset: int = 0

	content_type: str = 'Auto'
	format: str = 'jfif'
	images_to_transfer: int = 1
	job_name: str = 'scanjob'
	requesting_user: str = 'sane'

	# Exposure, None = not sent
	auto_exposure: bool | None = None
	brightness: int | None = None
	contrast: int | None = None
	sharpness: int | None = None


@dataclass
class ScanJob:
	"""One in-flight acquisition."""
	id: str
	token: str
	ticket: ScanTicket
	raster: RasterDescriptor
	document_name: str = 'sane.wsd-scan'
