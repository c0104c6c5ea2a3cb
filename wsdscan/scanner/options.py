# (c) Copyright Datacraft, 2026
"""
Option model built from scanner capabilities.

Options are kept as an ordered table of descriptors. Each descriptor
carries its value type, constraint, capability flags and the reload
side effect of a successful set, so get/set never branch per option.
"""
import logging
from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag
from typing import Any

from .capabilities import ScannerCapabilities
from .errors import ConstraintError, InactiveOptionError, InvalidError

logger = logging.getLogger(__name__)


class OptionIndex(IntEnum):
	"""Position of each option in the table."""
	NUM_OPTS = 0
	SCAN_SOURCE = 1
	FORMAT_GROUP = 2
	RESOLUTION = 3
	COLOR = 4
	GEOMETRY_GROUP = 5
	WIDTH = 6
	HEIGHT = 7
	QUALITY_GROUP = 8
	AUTO_EXPOSURE = 9
	BRIGHTNESS = 10
	CONTRAST = 11
	SHARPNESS = 12


NUM_OPTIONS = len(OptionIndex)


class OptionType(str, Enum):
	BOOL = 'bool'
	INT = 'int'
	STRING = 'string'
	GROUP = 'group'


class OptionUnit(str, Enum):
	NONE = 'none'
	BIT = 'bit'
	MM = 'mm'
	DPI = 'dpi'
	PERCENT = 'percent'


class Capability(IntFlag):
	"""Option capability flags."""
	NONE = 0
	SOFT_SELECT = 1
	HARD_SELECT = 2
	SOFT_DETECT = 4
	INACTIVE = 32


class ReloadFlags(IntFlag):
	"""What a consumer must reload after a successful set."""
	NONE = 0
	RELOAD_OPTIONS = 2
	RELOAD_PARAMS = 4


@dataclass(frozen=True)
class Range:
	"""Inclusive integer range, quant 0 means any step."""
	min: int
	max: int
	quant: int = 0

	def __contains__(self, value: int) -> bool:
		if not self.min <= value <= self.max:
			return False
		if self.quant:
			return (value - self.min) % self.quant == 0
		return True


PERCENTAGE_RANGE = Range(-100, 100, 1)

SETTABLE = Capability.SOFT_SELECT | Capability.SOFT_DETECT


@dataclass(frozen=True)
class OptionDescriptor:
	"""Static description of one option."""
	name: str
	title: str
	desc: str
	type: OptionType
	unit: OptionUnit = OptionUnit.NONE
	cap: Capability = SETTABLE
	constraint: Range | tuple | None = None
	reload: ReloadFlags = ReloadFlags.RELOAD_PARAMS

	@property
	def is_active(self) -> bool:
		return not self.cap & Capability.INACTIVE

	@property
	def is_settable(self) -> bool:
		return bool(self.cap & Capability.SOFT_SELECT)

	@property
	def has_value(self) -> bool:
		return self.type is not OptionType.GROUP

	def check(self, value: Any) -> Any:
		"""
		Validate a value against type and constraint.

		Returns:
			The value normalised to the option's storage type

		Raises:
			ConstraintError: wrong type or outside the constraint
		"""
		if isinstance(value, Enum):
			value = value.value
		if self.type is OptionType.BOOL:
			if not isinstance(value, bool):
				raise ConstraintError(f"{self.name} expects a boolean, got {value!r}")
		elif self.type is OptionType.INT:
			if isinstance(value, bool) or not isinstance(value, int):
				raise ConstraintError(f"{self.name} expects an integer, got {value!r}")
		elif self.type is OptionType.STRING:
			if not isinstance(value, str):
				raise ConstraintError(f"{self.name} expects a string, got {value!r}")

		if self.constraint is not None and value not in self.constraint:
			raise ConstraintError(f"{value!r} violates constraint of {self.name}")
		return value


def _group(name: str, title: str) -> OptionDescriptor:
	return OptionDescriptor(
		name=name,
		title=title,
		desc='',
		type=OptionType.GROUP,
		cap=Capability.NONE,
		reload=ReloadFlags.NONE,
	)


def _feature_cap(supported: bool) -> Capability:
	return SETTABLE if supported else SETTABLE | Capability.INACTIVE


class OptionTable:
	"""Ordered, typed, constrained options of one device session."""

	def __init__(self, descriptors: list[OptionDescriptor], values: list[Any]):
		if len(descriptors) != len(values):
			raise ValueError("descriptors and values differ in length")
		self._descriptors = descriptors
		self._values = values

	@classmethod
	def build(cls, caps: ScannerCapabilities) -> "OptionTable":
		"""Build the option table once per device open."""
		sources = tuple(source.value for source in caps.sources)
		width = Range(*caps.area.width_range)
		height = Range(*caps.area.height_range)

		table: list[tuple[OptionDescriptor, Any]] = [
			(OptionDescriptor(
				name='num-options',
				title='Number of options',
				desc='Read-only option that specifies how many options a specific device supports.',
				type=OptionType.INT,
				cap=Capability.SOFT_DETECT,
				reload=ReloadFlags.NONE,
			), NUM_OPTIONS),
			(OptionDescriptor(
				name='source',
				title='Scan source',
				desc='Scan input selector',
				type=OptionType.STRING,
				constraint=sources,
				reload=ReloadFlags.RELOAD_OPTIONS | ReloadFlags.RELOAD_PARAMS,
			), sources[0]),
			(_group('format', 'Scan format'), None),
			(OptionDescriptor(
				name='resolution',
				title='Scan resolution',
				desc='Resolution in dots per inch',
				type=OptionType.INT,
				unit=OptionUnit.DPI,
				constraint=tuple(caps.resolutions),
				reload=ReloadFlags.RELOAD_OPTIONS | ReloadFlags.RELOAD_PARAMS,
			), caps.optical_resolution),
			(OptionDescriptor(
				name='depth',
				title='Color depth',
				desc='Bits per pixel',
				type=OptionType.INT,
				unit=OptionUnit.BIT,
				constraint=tuple(caps.color_depths),
			), caps.max_color_depth),
			(_group('geometry', 'Scan size'), None),
			(OptionDescriptor(
				name='width',
				title='Scan width',
				desc='Width of scan area',
				type=OptionType.INT,
				unit=OptionUnit.MM,
				constraint=width,
			), width.min),
			(OptionDescriptor(
				name='height',
				title='Scan height',
				desc='Height of scan area',
				type=OptionType.INT,
				unit=OptionUnit.MM,
				constraint=height,
			), height.min),
			(_group('quality', 'Image quality'), None),
			(OptionDescriptor(
				name='auto-exposure',
				title='Enable auto exposure',
				desc='Might be disabled if unsupported by scanner',
				type=OptionType.BOOL,
				cap=_feature_cap(caps.auto_exposure),
			), False),
			(OptionDescriptor(
				name='brightness',
				title='Brightness',
				desc='Might be disabled if unsupported by scanner',
				type=OptionType.INT,
				unit=OptionUnit.PERCENT,
				cap=_feature_cap(caps.brightness),
				constraint=PERCENTAGE_RANGE,
			), 0),
			(OptionDescriptor(
				name='contrast',
				title='Contrast',
				desc='Might be disabled if unsupported by scanner',
				type=OptionType.INT,
				unit=OptionUnit.PERCENT,
				cap=_feature_cap(caps.contrast),
				constraint=PERCENTAGE_RANGE,
			), 0),
			(OptionDescriptor(
				name='sharpness',
				title='Sharpness',
				desc='Might be disabled if unsupported by scanner',
				type=OptionType.INT,
				unit=OptionUnit.PERCENT,
				cap=_feature_cap(caps.sharpness),
				constraint=PERCENTAGE_RANGE,
			), 0),
		]
		descriptors = [descriptor for descriptor, _ in table]
		values = [value for _, value in table]
		for descriptor, value in table:
			if descriptor.has_value and descriptor.constraint is not None:
				descriptor.check(value)
		return cls(descriptors, values)

	def __len__(self) -> int:
		return len(self._descriptors)

	def descriptor(self, index: int) -> OptionDescriptor | None:
		"""Return the descriptor, None if index is out of range."""
		if not 0 <= index < len(self._descriptors):
			return None
		return self._descriptors[index]

	def index_of(self, name: str) -> int:
		"""Look up an option index by name."""
		for index, descriptor in enumerate(self._descriptors):
			if descriptor.name == name:
				return index
		raise InvalidError(f"No option named '{name}'")

	def _checked(self, index: int) -> OptionDescriptor:
		descriptor = self.descriptor(index)
		if descriptor is None:
			logger.error(f"Option index {index} out of range")
			raise InvalidError(f"Option index {index} out of range")
		if not descriptor.is_active:
			logger.error(f"Option inactive ({descriptor.name})")
			raise InactiveOptionError(f"Option {descriptor.name} is inactive")
		if not descriptor.has_value:
			raise InvalidError(f"Option {descriptor.name} is a group and has no value")
		return descriptor

	def get(self, index: int) -> Any:
		"""Return the current value of an option."""
		descriptor = self._checked(index)
		value = self._values[index]
		logger.debug(f"get {descriptor.name} [#{index}] val={value}")
		return value

	def set(self, index: int, value: Any) -> ReloadFlags:
		"""
		Set an option value.

		Returns:
			Reload flags the caller has to honour

		Raises:
			InvalidError: out of range, group or detect-only option
			InactiveOptionError: option inactive
			ConstraintError: value violates the constraint
		"""
		descriptor = self._checked(index)
		if not descriptor.is_settable:
			raise InvalidError(f"Option {descriptor.name} cannot be set")
		value = descriptor.check(value)
		logger.debug(f"set {descriptor.name} [#{index}] to {value}")
		self._values[index] = value
		return descriptor.reload

	def value(self, index: OptionIndex) -> Any:
		"""Current value without activity checks, for building tickets."""
		return self._values[index]

	def is_active(self, index: OptionIndex) -> bool:
		return self._descriptors[index].is_active

	def __iter__(self):
		return iter(zip(self._descriptors, self._values))
