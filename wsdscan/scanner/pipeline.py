# (c) Copyright Datacraft, 2026
"""Image retrieval: fetch the attached payload of a job and decode it."""
import logging
from urllib.parse import unquote

from .base import ScanJob
from .decode import DecodedImage, decode_image
from .document import XOP, ResponseDocument
from .errors import InvalidResponseError
from .transport import WSDClient

logger = logging.getLogger(__name__)

# <xop:Include href="cid:id6"/>
CID_PREFIX = 'cid:'


def resolve_attachment(doc: ResponseDocument, attachments: dict[str, bytes]) -> bytes:
	"""
	Follow the ScanData content reference to its binary attachment.

	Raises:
		InvalidResponseError: reference missing, not a cid: reference,
			or pointing at an attachment that was not sent
	"""
	scan_data = doc.find('ScanData')
	if scan_data is None:
		logger.error("No ScanData in RetrieveImageResponse")
		raise InvalidResponseError("No ScanData in RetrieveImageResponse")

	include = doc.find('Include', XOP, parent=scan_data)
	if include is None:
		logger.error("No xop:Include in ScanData")
		raise InvalidResponseError("No xop:Include in ScanData")

	href = include.get('href')
	if href is None:
		logger.error("No href attribute in xop:Include")
		raise InvalidResponseError("No href attribute in xop:Include")

	if not href.startswith(CID_PREFIX):
		logger.error(f"No {CID_PREFIX} prefix in '{href}'")
		raise InvalidResponseError(f"Unexpected content reference '{href}'")

	content_id = unquote(href[len(CID_PREFIX):])
	payload = attachments.get(content_id)
	if payload is None:
		logger.error(f"Attachment '{content_id}' not in response ({list(attachments)})")
		raise InvalidResponseError(f"Attachment '{content_id}' missing")
	logger.info(f"Have {len(payload)} bytes of image data")
	return payload


class ImagePipeline:
	"""Fetches and decodes the image of an active job."""

	def __init__(self, client: WSDClient):
		self._client = client

	def fetch(self, job: ScanJob) -> bytes:
		"""Retrieve the compressed payload of a job."""
		logger.info(f"RetrieveImage for job {job.id}")
		doc, attachments = self._client.retrieve_image(job.id, job.token, job.document_name)
		return resolve_attachment(doc, attachments)

	def run(self, job: ScanJob) -> DecodedImage:
		"""Fetch and decode, never retried."""
		max_pixels = job.raster.pixels_per_line * job.raster.lines
		return decode_image(self.fetch(job), max_pixels=max_pixels)
