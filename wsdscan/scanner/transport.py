# (c) Copyright Datacraft, 2026
"""WS-Scan SOAP client over HTTP."""
import logging
import uuid
from email import message_from_bytes
from email.policy import default
from xml.sax.saxutils import escape

import httpx

from .base import ScanTicket
from .capabilities import depth_to_color_mode
from .document import NAMESPACES, ResponseDocument
from .errors import TransportError

logger = logging.getLogger(__name__)


SCAN_ACTION = 'http://schemas.microsoft.com/windows/2006/08/wdp/scan'
ANONYMOUS = 'http://schemas.xmlsoap.org/ws/2004/08/addressing/role/anonymous'

ENVELOPE = '''<?xml version="1.0" encoding="UTF-8"?>
<soap:Envelope xmlns:soap="{soap}" xmlns:wsa="{wsa}" xmlns:wscn="{wscn}">
    <soap:Header>
        <wsa:To>{to}</wsa:To>
        <wsa:Action>{action}</wsa:Action>
        <wsa:MessageID>urn:uuid:{message_id}</wsa:MessageID>
        <wsa:ReplyTo><wsa:Address>{anonymous}</wsa:Address></wsa:ReplyTo>
    </soap:Header>
    <soap:Body>
{body}
    </soap:Body>
</soap:Envelope>'''

GET_ELEMENTS = '''        <wscn:GetScannerElementsRequest>
            <wscn:RequestedElements>
                <wscn:Name>wscn:{element}</wscn:Name>
            </wscn:RequestedElements>
        </wscn:GetScannerElementsRequest>'''


class WSDClient:
	"""
	Blocking WS-Scan client for one device.

	Every action is a single round trip bounded by a timeout; failures
	of any kind surface as TransportError.
	"""

	def __init__(
		self,
		url: str,
		timeout: float = 30.0,
		retrieve_timeout: float = 120.0,
		verify_ssl: bool = True,
		user_agent: str = 'wsdscan/1.0',
		dump_messages: bool = False,
		transport: httpx.BaseTransport | None = None,
	):
		self.url = url
		self._retrieve_timeout = retrieve_timeout
		self._dump_messages = dump_messages
		self._client = httpx.Client(
			timeout=timeout,
			verify=verify_ssl,
			follow_redirects=True,
			headers={'User-Agent': user_agent},
			transport=transport,
		)

	def close(self):
		"""Close HTTP client."""
		self._client.close()

	def __enter__(self):
		return self

	def __exit__(self, *args):
		self.close()

	def __repr__(self):
		return f"{self.__class__.__name__}({self.url})"

	# Actions

	def get_scanner_description(self) -> ResponseDocument:
		doc, _ = self._call('GetScannerElements', GET_ELEMENTS.format(element='ScannerDescription'))
		return doc

	def get_scanner_configuration(self) -> ResponseDocument:
		doc, _ = self._call('GetScannerElements', GET_ELEMENTS.format(element='ScannerConfiguration'))
		return doc

	def get_scanner_status(self) -> ResponseDocument:
		doc, _ = self._call('GetScannerElements', GET_ELEMENTS.format(element='ScannerStatus'))
		return doc

	def create_scan_job(self, ticket: ScanTicket) -> ResponseDocument:
		doc, _ = self._call('CreateScanJob', build_scan_ticket(ticket))
		return doc

	def retrieve_image(
		self,
		job_id: str,
		job_token: str,
		document_name: str,
	) -> tuple[ResponseDocument, dict[str, bytes]]:
		"""
		Fetch the image of a job.

		Returns:
			Response document and MIME attachments keyed by Content-ID
		"""
		body = f'''        <wscn:RetrieveImageRequest>
            <wscn:JobId>{escape(job_id)}</wscn:JobId>
            <wscn:JobToken>{escape(job_token)}</wscn:JobToken>
            <wscn:DocumentDescription>
                <wscn:DocumentName>{escape(document_name)}</wscn:DocumentName>
            </wscn:DocumentDescription>
        </wscn:RetrieveImageRequest>'''
		return self._call('RetrieveImage', body, timeout=self._retrieve_timeout)

	def cancel_job(self, job_id: str) -> ResponseDocument:
		body = f'''        <wscn:CancelJobRequest>
            <wscn:JobId>{escape(job_id)}</wscn:JobId>
        </wscn:CancelJobRequest>'''
		doc, _ = self._call('CancelJob', body)
		return doc

	# Plumbing

	def _envelope(self, action: str, body: str) -> str:
		return ENVELOPE.format(
			soap=NAMESPACES['soap'],
			wsa=NAMESPACES['wsa'],
			wscn=NAMESPACES['wscn'],
			to=escape(self.url),
			action=f"{SCAN_ACTION}/{action}",
			message_id=uuid.uuid4(),
			anonymous=ANONYMOUS,
			body=body,
		)

	def _call(
		self,
		action: str,
		body: str,
		timeout: float | None = None,
	) -> tuple[ResponseDocument, dict[str, bytes]]:
		envelope = self._envelope(action, body)
		if self._dump_messages:
			logger.debug(f"{action} request to {self.url}:\n{envelope}")

		kwargs = {}
		if timeout is not None:
			kwargs['timeout'] = timeout
		try:
			response = self._client.post(
				self.url,
				content=envelope.encode('utf-8'),
				headers={'Content-Type': 'application/soap+xml; charset=utf-8'},
				**kwargs,
			)
		except httpx.TimeoutException as e:
			logger.error(f"{action} to {self.url} timed out")
			raise TransportError(f"{action} timed out", e)
		except httpx.HTTPError as e:
			logger.error(f"{action} to {self.url} failed: {e}")
			raise TransportError(f"{action} failed: {e}", e)

		content_type = response.headers.get('Content-Type', '')
		if content_type.lower().startswith('multipart/'):
			xml, attachments = split_multipart(response.content, content_type)
		else:
			xml, attachments = response.content, {}

		if self._dump_messages:
			logger.debug(f"{action} response ({response.status_code}):\n{xml[:4096]!r}")

		# SOAP faults come back as HTTP 500 with a fault body
		doc = None
		if xml:
			try:
				doc = ResponseDocument.from_bytes(xml)
			except TransportError:
				if response.is_success:
					raise
		if doc is not None:
			reason = doc.fault()
			if reason is not None:
				logger.error(f"{action} fault: {reason}")
				raise TransportError(f"{action} fault: {reason}")
		if not response.is_success:
			logger.error(f"{action} failed with status {response.status_code}")
			raise TransportError(f"{action} failed with HTTP {response.status_code}")
		if doc is None:
			raise TransportError(f"{action} returned an empty response")
		return doc, attachments


def build_scan_ticket(ticket: ScanTicket) -> str:
	"""Build the CreateScanJobRequest body for a ticket."""
	exposure = ''
	if ticket.auto_exposure:
		exposure = '''
                <wscn:Exposure>
                    <wscn:AutoExposure>true</wscn:AutoExposure>
                </wscn:Exposure>'''
	else:
		settings = ''
		for element, value in (
			('Contrast', ticket.contrast),
			('Brightness', ticket.brightness),
			('Sharpness', ticket.sharpness),
		):
			if value is not None:
				settings += f'\n                        <wscn:{element}>{value}</wscn:{element}>'
		if settings:
			exposure = f'''
                <wscn:Exposure>
                    <wscn:ExposureSettings>{settings}
                    </wscn:ExposureSettings>
                </wscn:Exposure>'''

	return f'''        <wscn:CreateScanJobRequest>
            <wscn:ScanTicket>
                <wscn:JobDescription>
                    <wscn:JobName>{escape(ticket.job_name)}</wscn:JobName>
                    <wscn:JobOriginatingUserName>{escape(ticket.requesting_user)}</wscn:JobOriginatingUserName>
                </wscn:JobDescription>
                <wscn:DocumentParameters>
                    <wscn:Format>{escape(ticket.format)}</wscn:Format>
                    <wscn:ImagesToTransfer>{ticket.images_to_transfer}</wscn:ImagesToTransfer>
                    <wscn:InputSource>{ticket.input_source.ticket_value}</wscn:InputSource>
                    <wscn:ContentType>{escape(ticket.content_type)}</wscn:ContentType>
                    <wscn:InputSize>
                        <wscn:InputMediaSize>
                            <wscn:Width>{ticket.width}</wscn:Width>
                            <wscn:Height>{ticket.height}</wscn:Height>
                        </wscn:InputMediaSize>
                    </wscn:InputSize>{exposure}
                    <wscn:MediaSides>
                        <wscn:MediaFront>
                            <wscn:ScanRegion>
                                <wscn:ScanRegionXOffset>{ticket.x_offset}</wscn:ScanRegionXOffset>
                                <wscn:ScanRegionYOffset>{ticket.y_offset}</wscn:ScanRegionYOffset>
                                <wscn:ScanRegionWidth>{ticket.width}</wscn:ScanRegionWidth>
                                <wscn:ScanRegionHeight>{ticket.height}</wscn:ScanRegionHeight>
                            </wscn:ScanRegion>
                            <wscn:ColorProcessing>{depth_to_color_mode(ticket.color_depth).value}</wscn:ColorProcessing>
                            <wscn:Resolution>
                                <wscn:Width>{ticket.resolution}</wscn:Width>
                                <wscn:Height>{ticket.resolution}</wscn:Height>
                            </wscn:Resolution>
                        </wscn:MediaFront>
                    </wscn:MediaSides>
                </wscn:DocumentParameters>
            </wscn:ScanTicket>
        </wscn:CreateScanJobRequest>'''


def split_multipart(data: bytes, content_type: str) -> tuple[bytes, dict[str, bytes]]:
	"""
	Split a multipart/related (MTOM) body.

	Returns:
		Root XML part and the remaining parts keyed by Content-ID

	Raises:
		TransportError: no boundary or no root part
	"""
	mime_data = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode('utf-8') + data
	msg = message_from_bytes(mime_data, policy=default)
	if not msg.get_boundary():
		raise TransportError(f"No MIME boundary in '{content_type}'")
	if not msg.is_multipart():
		raise TransportError("Response body is not multipart")

	start = msg.get_param('start')
	if start:
		start = start.strip('<>')

	root = None
	attachments: dict[str, bytes] = {}
	for part in msg.iter_parts():
		content_id = (part.get('Content-ID') or '').strip().strip('<>')
		part_type = part.get_content_type()
		body = part.get_payload(decode=True) or b''

		is_root = content_id == start if start else (
			root is None and part_type in ('application/xop+xml', 'application/soap+xml', 'text/xml')
		)
		if is_root:
			root = body
		else:
			attachments[content_id] = body

	if root is None:
		raise TransportError("No root part in multipart response")
	logger.debug(f"Multipart response with {len(attachments)} attachment(s)")
	return root, attachments
