# (c) Copyright Datacraft, 2026
"""Tests for image decoding and attachment resolution."""
import io

import pytest
from PIL import Image

from wsdscan.scanner.base import FrameFormat
from wsdscan.scanner.decode import decode_image
from wsdscan.scanner.document import ResponseDocument
from wsdscan.scanner.errors import DecodeError, InvalidResponseError, NoMemoryError
from wsdscan.scanner.pipeline import resolve_attachment


class TestDecodeImage:
	"""Tests for decode_image."""

	def test_rgb_jpeg(self, make_jpeg):
		"""Test a colour JPEG decodes to 3 components."""
		image = decode_image(make_jpeg(64, 48, 'RGB'))
		assert (image.width, image.height, image.components) == (64, 48, 3)
		assert len(image.data) == 64 * 48 * 3
		assert image.raster.format is FrameFormat.RGB
		assert image.raster.bytes_per_line == 64 * 3

	def test_gray_jpeg(self, make_jpeg):
		"""Test a grayscale JPEG decodes to 1 component."""
		image = decode_image(make_jpeg(33, 10, 'L'))
		assert image.components == 1
		assert image.pixel_size == 1
		assert len(image.data) == 33 * 10
		assert image.raster.format is FrameFormat.GRAY
		assert image.raster.depth == 8

	def test_component_count_wins(self, make_jpeg):
		"""Test pixel size follows the decoder, not the requested depth."""
		image = decode_image(make_jpeg(8, 8, 'L'))
		assert image.raster.bits_per_pixel == 8

	def test_cmyk_converted(self):
		"""Test other decoder modes are converted to RGB."""
		out = io.BytesIO()
		Image.new('CMYK', (5, 5), (0, 0, 0, 0)).save(out, format='JPEG')
		image = decode_image(out.getvalue())
		assert image.components == 3
		assert len(image.data) == 5 * 5 * 3

	def test_empty_payload(self):
		"""Test an empty payload is invalid data."""
		with pytest.raises(DecodeError):
			decode_image(b'')

	def test_garbage_payload(self):
		"""Test an unrecognised payload is invalid data."""
		with pytest.raises(DecodeError):
			decode_image(b'definitely not an image')

	def test_truncated_payload(self, make_jpeg):
		"""Test a truncated JPEG is invalid data."""
		payload = make_jpeg(64, 64)
		with pytest.raises(DecodeError):
			decode_image(payload[:len(payload) // 3])

	def test_oversized_image(self, make_jpeg, monkeypatch):
		"""Test an image far beyond the pixel limit is invalid data."""
		monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100)
		with pytest.raises(DecodeError):
			decode_image(make_jpeg(40, 30))

	def test_pixel_limit_raised(self, make_jpeg, monkeypatch):
		"""Test the announced image size raises the pixel limit."""
		monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100)
		image = decode_image(make_jpeg(40, 30), max_pixels=40 * 30)
		assert len(image.data) == 40 * 30 * 3

	def test_sixteen_bit_scaled(self):
		"""Test 16-bit samples are scaled to 8 bits, not clipped."""
		out = io.BytesIO()
		Image.new('I;16', (4, 2), 0xAB00).save(out, format='PNG')
		image = decode_image(out.getvalue())
		assert image.components == 1
		assert image.data == bytes([0xAB]) * 8

	def test_out_of_memory(self, make_jpeg, monkeypatch):
		"""Test an allocation failure is reported as out of memory."""
		def fail_tobytes(self, *args, **kwargs):
			raise MemoryError()

		monkeypatch.setattr(Image.Image, 'tobytes', fail_tobytes)
		with pytest.raises(NoMemoryError):
			decode_image(make_jpeg(8, 8))


class TestResolveAttachment:
	"""Tests for the ScanData content reference."""

	def test_cid_reference(self, wsd):
		"""Test a cid: reference finds its attachment."""
		doc = ResponseDocument.from_bytes(wsd.retrieve('cid:id6'))
		assert resolve_attachment(doc, {'id6': b'payload'}) == b'payload'

	def test_escaped_reference(self, wsd):
		"""Test URL-escaped content ids are unescaped."""
		doc = ResponseDocument.from_bytes(wsd.retrieve('cid:part%40host'))
		assert resolve_attachment(doc, {'part@host': b'payload'}) == b'payload'

	@pytest.mark.parametrize('href', ['id6', 'http://host/id6', 'CID-id6'])
	def test_wrong_prefix(self, wsd, href):
		"""Test references without the cid: prefix are invalid."""
		doc = ResponseDocument.from_bytes(wsd.retrieve(href))
		with pytest.raises(InvalidResponseError):
			resolve_attachment(doc, {'id6': b'payload'})

	def test_no_include(self, wsd):
		"""Test ScanData without xop:Include is invalid."""
		doc = ResponseDocument.from_bytes(wsd.retrieve(None))
		with pytest.raises(InvalidResponseError):
			resolve_attachment(doc, {})

	def test_no_scan_data(self, wsd):
		"""Test a response without ScanData is invalid."""
		doc = ResponseDocument.from_bytes(wsd.envelope('<wscn:RetrieveImageResponse/>'))
		with pytest.raises(InvalidResponseError):
			resolve_attachment(doc, {})
