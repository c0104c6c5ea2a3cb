# (c) Copyright Datacraft, 2026
"""Scanner capabilities models and capability document parsing."""
import logging
from dataclasses import dataclass, field
from enum import Enum

from .document import ResponseDocument, is_true
from .errors import ConfigurationInvalidError

logger = logging.getLogger(__name__)

# Capability geometry is expressed in thousandths of an inch
MM_PER_INCH = 25.4
THOUSANDTHS_PER_INCH = 1000


class InputSource(str, Enum):
	"""Input sources for scanning."""
	PLATEN = 'Platen'  # Flatbed glass
	ADF = 'ADF'  # Automatic Document Feeder
	ADF_SIMPLEX = 'ADFSimplex'  # Feeder, front side only
	ADF_DUPLEX = 'ADFDuplex'  # Feeder, both sides
	FILM = 'Film'

	@property
	def ticket_value(self) -> str:
		"""InputSource value used in a scan ticket."""
		if self is InputSource.ADF_SIMPLEX:
			return InputSource.ADF.value
		return self.value


class ColorMode(str, Enum):
	"""Colour processing modes named in capability documents."""
	BW1 = 'BlackAndWhite1'
	GS4 = 'Grayscale4'
	GS8 = 'Grayscale8'
	GS16 = 'Grayscale16'
	RGB24 = 'RGB24'
	RGB48 = 'RGB48'
	RGBA32 = 'RGBa32'
	RGBA64 = 'RGBa64'


COLOR_MODE_DEPTHS: dict[ColorMode, int] = {
	ColorMode.BW1: 1,
	ColorMode.GS4: 4,
	ColorMode.GS8: 8,
	ColorMode.GS16: 16,
	ColorMode.RGB24: 24,
	ColorMode.RGB48: 48,
	ColorMode.RGBA32: 32,
	ColorMode.RGBA64: 64,
}

_DEPTH_COLOR_MODES = {depth: mode for mode, depth in COLOR_MODE_DEPTHS.items()}


def color_mode_to_depth(text: str | None) -> int | None:
	"""Map a colour mode name to bits per pixel, None if unknown."""
	try:
		return COLOR_MODE_DEPTHS[ColorMode(text)]
	except ValueError:
		logger.error(f"Unknown color mode '{text}'")
		return None


def depth_to_color_mode(depth: int) -> ColorMode:
	"""Map bits per pixel back to a colour mode name."""
	if depth not in _DEPTH_COLOR_MODES:
		raise ValueError(f"Unknown color depth {depth}")
	return _DEPTH_COLOR_MODES[depth]


# Element probed in the configuration -> source it advertises
SOURCE_ELEMENTS: list[tuple[str, InputSource]] = [
	('Platen', InputSource.PLATEN),
	('ADF', InputSource.ADF),
	('ADFFront', InputSource.ADF_SIMPLEX),
	('ADFBack', InputSource.ADF_DUPLEX),
	('Film', InputSource.FILM),
]

# Candidate paths, platen first, then feeder, then film
OPTICAL_RESOLUTION_PATHS = [
	'PlatenOpticalResolution',
	'ADFOpticalResolution',
	'FilmOpticalResolution',
]
RESOLUTIONS_PATHS = [
	'PlatenResolutions',
	'ADFResolutions',
	'FilmResolutions',
]
COLOR_PATHS = [
	'PlatenColor',
	'ADFColor',
	'FilmColor',
]

FEATURE_FLAGS = {
	'auto_exposure': 'AutoExposureSupported',
	'brightness': 'BrightnessSupported',
	'contrast': 'ContrastSupported',
	'sharpness': 'SharpnessSupported',
}


def thousandths_to_mm(value: int) -> int:
	return round(value * MM_PER_INCH / THOUSANDTHS_PER_INCH)


def mm_to_thousandths(value: int) -> int:
	return round(value * THOUSANDTHS_PER_INCH / MM_PER_INCH)


@dataclass
class ScanArea:
	"""Inclusive scan area bounds in millimetres."""
	min_width: int = 0
	max_width: int = 216  # A4/Letter
	min_height: int = 0
	max_height: int = 297

	@property
	def width_range(self) -> tuple[int, int]:
		return self.min_width, self.max_width

	@property
	def height_range(self) -> tuple[int, int]:
		return self.min_height, self.max_height


@dataclass
class ScannerCapabilities:
	"""Capabilities of the primary (platen) source."""
	sources: list[InputSource] = field(default_factory=list)

	# Resolution, optical first
	optical_resolution: int = 300
	resolutions: list[int] = field(default_factory=list)

	# Bits per pixel in document order
	color_depths: list[int] = field(default_factory=list)

	area: ScanArea = field(default_factory=ScanArea)

	# Features
	auto_exposure: bool = False
	brightness: bool = False
	contrast: bool = False
	sharpness: bool = False

	# Informational
	formats: list[str] = field(default_factory=list)
	content_types: list[str] = field(default_factory=list)

	@property
	def max_color_depth(self) -> int:
		return max(self.color_depths)

	def supports_input_source(self, source: InputSource) -> bool:
		"""Check if input source is supported."""
		return source in self.sources

	@classmethod
	def from_wsd(cls, doc: ResponseDocument) -> "ScannerCapabilities":
		"""
		Parse a ScannerConfiguration capability document.

		Args:
			doc: Parsed GetScannerElements response (or bare configuration)

		Returns:
			ScannerCapabilities for the primary source

		Raises:
			ConfigurationInvalidError: resolution, colour or geometry missing
		"""
		caps = cls()
		config = doc.find('ScannerConfiguration')
		if config is None:
			config = doc.root

		caps.sources = _parse_sources(doc, config)
		caps.optical_resolution, caps.resolutions = _parse_resolutions(doc, config)
		caps.color_depths = _parse_color_depths(doc, config)
		caps.area = _parse_area(doc, config)

		for attr, element in FEATURE_FLAGS.items():
			setattr(caps, attr, is_true(doc.find(element, parent=config)))

		caps.formats = [
			node.text.strip()
			for node in doc.children(doc.find('FormatsSupported', parent=config), 'FormatValue')
			if node.text
		]
		caps.content_types = [
			node.text.strip()
			for node in doc.children(doc.find('ContentTypesSupported', parent=config), 'ContentTypeValue')
			if node.text
		]

		logger.debug(
			f"Capabilities: sources={[s.value for s in caps.sources]} "
			f"resolutions={caps.resolutions} depths={caps.color_depths} area={caps.area}"
		)
		return caps


def _parse_sources(doc: ResponseDocument, config) -> list[InputSource]:
	sources = []
	for element, source in SOURCE_ELEMENTS:
		if doc.find(element, parent=config) is not None:
			logger.debug(f"{element} found")
			sources.append(source)
	if not sources:
		# Every WS-Scan device has a primary source; assume the platen
		logger.warning("No input source advertised, assuming Platen")
		sources.append(InputSource.PLATEN)
	return sources


def _parse_int(text: str | None, what: str) -> int:
	try:
		return int(text)
	except (TypeError, ValueError):
		raise ConfigurationInvalidError(f"Invalid {what} value '{text}'")


def _parse_resolutions(doc: ResponseDocument, config) -> tuple[int, list[int]]:
	optical = doc.find_first(OPTICAL_RESOLUTION_PATHS, parent=config)
	if optical is None:
		logger.error("No OpticalResolution found in scanner configuration")
		raise ConfigurationInvalidError("No OpticalResolution in capability document")

	optical_text = doc.text('Width', parent=optical) or doc.text('Height', parent=optical)
	if optical_text is None:
		logger.error("No Width or Height found in OpticalResolution")
		raise ConfigurationInvalidError("OpticalResolution has no Width or Height")
	optical_dpi = _parse_int(optical_text, 'OpticalResolution')

	resolutions_node = doc.find_first(RESOLUTIONS_PATHS, parent=config)
	if resolutions_node is None:
		logger.error("No resolutions found in scanner configuration")
		raise ConfigurationInvalidError("No Resolutions in capability document")

	resolutions = [optical_dpi]
	widths = doc.find('Widths', parent=resolutions_node)
	for node in doc.children(widths, 'Width'):
		dpi = _parse_int(node.text, 'Resolution')
		if dpi not in resolutions:
			resolutions.append(dpi)
	logger.debug(f"Found {len(resolutions)} resolutions, optical {optical_dpi}")
	return optical_dpi, resolutions


def _parse_color_depths(doc: ResponseDocument, config) -> list[int]:
	color = doc.find_first(COLOR_PATHS, parent=config)
	if color is None:
		logger.error("No Color found in scanner configuration")
		raise ConfigurationInvalidError("No Color in capability document")

	if not doc.count_children(color, 'ColorEntry'):
		logger.error("Color has no ColorEntry")
		raise ConfigurationInvalidError("No ColorEntry in capability document")
	entries = doc.children(color, 'ColorEntry')

	depths = []
	for entry in entries:
		text = entry.text.strip() if entry.text else None
		depth = color_mode_to_depth(text)
		if depth is None:
			logger.warning(f"Ignoring unknown ColorEntry '{text}'")
			continue
		if depth not in depths:
			depths.append(depth)
	if not depths:
		raise ConfigurationInvalidError("No known ColorEntry in capability document")
	return depths


def _parse_area(doc: ResponseDocument, config) -> ScanArea:
	bounds = {}
	for element in ('PlatenMinimumSize', 'PlatenMaximumSize'):
		node = doc.find(element, parent=config)
		if node is None:
			logger.error(f"No {element} found")
			raise ConfigurationInvalidError(f"No {element} in capability document")
		for axis in ('Width', 'Height'):
			text = doc.text(axis, parent=node)
			if text is None:
				logger.error(f"No {axis} found in {element}")
				raise ConfigurationInvalidError(f"No {axis} in {element}")
			bounds[(element, axis)] = thousandths_to_mm(_parse_int(text, f"{element}/{axis}"))

	area = ScanArea(
		min_width=bounds[('PlatenMinimumSize', 'Width')],
		max_width=bounds[('PlatenMaximumSize', 'Width')],
		min_height=bounds[('PlatenMinimumSize', 'Height')],
		max_height=bounds[('PlatenMaximumSize', 'Height')],
	)
	if area.min_width > area.max_width or area.min_height > area.max_height:
		raise ConfigurationInvalidError(f"Inverted scan area bounds {area}")
	logger.debug(f"width: {area.min_width} - {area.max_width} mm")
	logger.debug(f"height: {area.min_height} - {area.max_height} mm")
	return area
