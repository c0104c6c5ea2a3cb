# (c) Copyright Datacraft, 2026
"""Decoding of transported images into raw raster data."""
import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from .base import FrameFormat, RasterDescriptor
from .errors import DecodeError, NoMemoryError

logger = logging.getLogger(__name__)

# Decoder modes delivered unchanged, anything else is converted
_NATIVE_MODES = {
	'L': FrameFormat.GRAY,
	'RGB': FrameFormat.RGB,
}


@dataclass
class DecodedImage:
	"""Contiguous raster buffer plus its geometry."""
	data: bytes
	width: int
	height: int
	components: int

	@property
	def pixel_size(self) -> int:
		return self.components

	@property
	def raster(self) -> RasterDescriptor:
		fmt = FrameFormat.RGB if self.components == 3 else FrameFormat.GRAY
		return RasterDescriptor(
			format=fmt,
			depth=8,
			pixels_per_line=self.width,
			lines=self.height,
		)


def decode_image(payload: bytes, max_pixels: int | None = None) -> DecodedImage:
	"""
	Decode a compressed image into 8-bit samples.

	The pixel size follows the decoder's component count, not the
	depth requested in the scan ticket. The decompression bomb limit is
	raised to ``max_pixels``, the image size announced for the job.

	Raises:
		DecodeError: payload is empty, malformed, truncated or far larger
			than the pixel limit
		NoMemoryError: buffer could not be allocated
	"""
	if not payload:
		raise DecodeError("Empty image payload")
	if max_pixels and Image.MAX_IMAGE_PIXELS is not None and max_pixels > Image.MAX_IMAGE_PIXELS:
		logger.debug(f"Raising image pixel limit to {max_pixels}")
		Image.MAX_IMAGE_PIXELS = max_pixels
	logger.info(f"Decompressing {len(payload)} bytes")
	try:
		with Image.open(io.BytesIO(payload)) as image:
			image.load()
			if image.mode == 'I' or image.mode.startswith('I;16'):
				# keep the high byte of 16-bit samples
				image = image.convert('I').point(lambda v: v * (1 / 256))
			if image.mode not in _NATIVE_MODES:
				target = 'L' if image.mode in ('1', 'I', 'F', 'LA') else 'RGB'
				logger.debug(f"Converting decoder mode {image.mode} to {target}")
				image = image.convert(target)
			width, height = image.size
			components = len(image.getbands())
			data = image.tobytes()
	except MemoryError as e:
		logger.error(f"Failed to allocate raster buffer for {len(payload)} byte payload")
		raise NoMemoryError(f"Cannot allocate raster buffer: {e}")
	except Image.DecompressionBombError as e:
		logger.error(f"Image exceeds the pixel limit: {e}")
		raise DecodeError(f"Image too large: {e}")
	except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
		logger.error(f"Decompression of image failed: {e}")
		raise DecodeError(f"Cannot decode image: {e}")

	expected = width * height * components
	if len(data) != expected:
		raise DecodeError(f"Decoded {len(data)} bytes, expected {expected}")
	logger.info(
		f"Decoded {width} x {height} image, {components * 8} bits per pixel, "
		f"{expected} bytes"
	)
	return DecodedImage(data=data, width=width, height=height, components=components)
