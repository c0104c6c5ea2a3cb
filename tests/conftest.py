# (c) Copyright Datacraft, 2026
"""Pytest fixtures for WS-Scan tests."""
import io

import pytest
from PIL import Image

from wsdscan.config.settings import Settings, reset_settings
from wsdscan.scanner.capabilities import ScannerCapabilities
from wsdscan.scanner.document import ResponseDocument
from wsdscan.scanner.errors import TransportError
from wsdscan.scanner.options import OptionTable

SOAP_NS = 'http://www.w3.org/2003/05/soap-envelope'
WSCN_NS = 'http://schemas.microsoft.com/windows/2006/08/wdp/scan'
XOP_NS = 'http://www.w3.org/2004/08/xop/include'


class WSDResponses:
	"""Builders for WS-Scan response documents."""

	@staticmethod
	def envelope(body: str) -> str:
		return (
			f'<soap:Envelope xmlns:soap="{SOAP_NS}" xmlns:wscn="{WSCN_NS}" xmlns:xop="{XOP_NS}">'
			f'<soap:Body>{body}</soap:Body></soap:Envelope>'
		)

	@classmethod
	def configuration(
		cls,
		sources=('Platen',),
		optical=600,
		resolutions=(300, 600),
		colors=('BlackAndWhite1', 'Grayscale8', 'RGB24'),
		min_size=(0, 0),
		max_size=(8504, 11693),
		features=(),
		omit=(),
	) -> str:
		parts = []
		if 'optical' not in omit:
			parts.append(
				f'<wscn:PlatenOpticalResolution><wscn:Width>{optical}</wscn:Width>'
				f'<wscn:Height>{optical}</wscn:Height></wscn:PlatenOpticalResolution>'
			)
		if 'resolutions' not in omit:
			widths = ''.join(f'<wscn:Width>{dpi}</wscn:Width>' for dpi in resolutions)
			parts.append(
				f'<wscn:PlatenResolutions><wscn:Widths>{widths}</wscn:Widths>'
				f'<wscn:Heights>{widths.replace("Width", "Height")}</wscn:Heights>'
				f'</wscn:PlatenResolutions>'
			)
		if 'color' not in omit:
			entries = ''.join(f'<wscn:ColorEntry>{color}</wscn:ColorEntry>' for color in colors)
			parts.append(f'<wscn:PlatenColor>{entries}</wscn:PlatenColor>')
		if 'geometry' not in omit:
			parts.append(
				f'<wscn:PlatenMinimumSize><wscn:Width>{min_size[0]}</wscn:Width>'
				f'<wscn:Height>{min_size[1]}</wscn:Height></wscn:PlatenMinimumSize>'
				f'<wscn:PlatenMaximumSize><wscn:Width>{max_size[0]}</wscn:Width>'
				f'<wscn:Height>{max_size[1]}</wscn:Height></wscn:PlatenMaximumSize>'
			)
		source_elements = ''.join(
			f'<wscn:{source}>{"".join(parts) if index == 0 else ""}</wscn:{source}>'
			for index, source in enumerate(sources)
		)
		device = ''.join(f'<wscn:{flag}>true</wscn:{flag}>' for flag in features)
		return cls.envelope(
			'<wscn:GetScannerElementsResponse><wscn:ScannerElements><wscn:ElementData>'
			'<wscn:ScannerConfiguration>'
			f'<wscn:DeviceSettings>{device}'
			'<wscn:FormatsSupported><wscn:FormatValue>jfif</wscn:FormatValue></wscn:FormatsSupported>'
			'<wscn:ContentTypesSupported><wscn:ContentTypeValue>Auto</wscn:ContentTypeValue>'
			'</wscn:ContentTypesSupported>'
			f'</wscn:DeviceSettings>{source_elements}'
			'</wscn:ScannerConfiguration>'
			'</wscn:ElementData></wscn:ScannerElements></wscn:GetScannerElementsResponse>'
		)

	@classmethod
	def description(cls, name='Acme ScanJet', info='Office scanner') -> str:
		return cls.envelope(
			'<wscn:GetScannerElementsResponse><wscn:ScannerElements><wscn:ElementData>'
			f'<wscn:ScannerDescription><wscn:ScannerName>{name}</wscn:ScannerName>'
			f'<wscn:ScannerInfo>{info}</wscn:ScannerInfo></wscn:ScannerDescription>'
			'</wscn:ElementData></wscn:ScannerElements></wscn:GetScannerElementsResponse>'
		)

	@classmethod
	def status(cls, state='Idle', condition=None) -> str:
		conditions = ''
		if condition is not None:
			conditions = (
				'<wscn:ActiveConditions><wscn:DeviceCondition>'
				f'<wscn:Name>{condition}</wscn:Name><wscn:Component>Platen</wscn:Component>'
				'</wscn:DeviceCondition></wscn:ActiveConditions>'
			)
		return cls.envelope(
			'<wscn:GetScannerElementsResponse><wscn:ScannerElements><wscn:ElementData>'
			f'<wscn:ScannerStatus><wscn:ScannerState>{state}</wscn:ScannerState>{conditions}'
			'</wscn:ScannerStatus>'
			'</wscn:ElementData></wscn:ScannerElements></wscn:GetScannerElementsResponse>'
		)

	@classmethod
	def job(
		cls,
		job_id='42',
		token='token-42',
		pixels_per_line=40,
		lines=30,
		color='RGB24',
		omit=(),
	) -> str:
		fields = {
			'JobId': f'<wscn:JobId>{job_id}</wscn:JobId>',
			'JobToken': f'<wscn:JobToken>{token}</wscn:JobToken>',
		}
		image_info = ''
		if 'MediaFrontImageInfo' not in omit:
			info_fields = ''
			if 'PixelsPerLine' not in omit:
				info_fields += f'<wscn:PixelsPerLine>{pixels_per_line}</wscn:PixelsPerLine>'
			if 'NumberOfLines' not in omit:
				info_fields += f'<wscn:NumberOfLines>{lines}</wscn:NumberOfLines>'
			image_info = f'<wscn:MediaFrontImageInfo>{info_fields}</wscn:MediaFrontImageInfo>'
		color_element = '' if 'ColorProcessing' in omit else (
			f'<wscn:MediaFront><wscn:ColorProcessing>{color}</wscn:ColorProcessing></wscn:MediaFront>'
		)
		head = ''.join(value for name, value in fields.items() if name not in omit)
		return cls.envelope(
			f'<wscn:CreateScanJobResponse>{head}'
			f'<wscn:ImageInformation>{image_info}</wscn:ImageInformation>'
			f'<wscn:DocumentFinalParameters><wscn:MediaSides>{color_element}'
			'</wscn:MediaSides></wscn:DocumentFinalParameters>'
			'</wscn:CreateScanJobResponse>'
		)

	@classmethod
	def retrieve(cls, href='cid:image') -> str:
		include = '' if href is None else f'<xop:Include href="{href}"/>'
		return cls.envelope(
			'<wscn:RetrieveImageResponse><wscn:ScanData>'
			f'{include}'
			'</wscn:ScanData></wscn:RetrieveImageResponse>'
		)


def jpeg_bytes(width=40, height=30, mode='RGB', color=(200, 40, 40)) -> bytes:
	if mode == 'L':
		color = color[0]
	image = Image.new(mode, (width, height), color)
	out = io.BytesIO()
	image.save(out, format='JPEG')
	return out.getvalue()


class FakeClient:
	"""In-memory WS-Scan client recording every call."""

	def __init__(self):
		self.configuration = WSDResponses.configuration()
		self.description = WSDResponses.description()
		self.statuses = [WSDResponses.status('Idle')]
		self.job_response = WSDResponses.job()
		self.retrieve_response = WSDResponses.retrieve()
		self.attachments = {'image': jpeg_bytes()}
		self.failures: dict[str, Exception] = {}
		self.calls: list[str] = []
		self.tickets = []
		self.cancelled: list[str] = []
		self.closed = False

	def set_statuses(self, *statuses):
		"""Queue status responses, the last one repeats."""
		self.statuses = [WSDResponses.status(*status) for status in statuses]

	def _respond(self, action: str, xml: str) -> ResponseDocument:
		self.calls.append(action)
		if action in self.failures:
			raise self.failures[action]
		return ResponseDocument.from_bytes(xml)

	def get_scanner_configuration(self):
		return self._respond('configuration', self.configuration)

	def get_scanner_description(self):
		return self._respond('description', self.description)

	def get_scanner_status(self):
		xml = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
		return self._respond('status', xml)

	def create_scan_job(self, ticket):
		self.tickets.append(ticket)
		return self._respond('create', self.job_response)

	def retrieve_image(self, job_id, job_token, document_name):
		doc = self._respond('retrieve', self.retrieve_response)
		return doc, self.attachments

	def cancel_job(self, job_id):
		self.cancelled.append(job_id)
		return self._respond('cancel', WSDResponses.envelope('<wscn:CancelJobResponse/>'))

	def close(self):
		self.closed = True

	def __enter__(self):
		return self

	def __exit__(self, *args):
		self.close()


@pytest.fixture(autouse=True)
def clean_settings():
	"""Drop the settings singleton between tests."""
	reset_settings()
	yield
	reset_settings()


@pytest.fixture
def wsd():
	"""Response document builders."""
	return WSDResponses


@pytest.fixture
def make_jpeg():
	return jpeg_bytes


@pytest.fixture
def settings(tmp_path):
	return Settings(config_file=tmp_path / 'wsd-scan.conf', _env_file=None)


@pytest.fixture
def fake_client_class():
	return FakeClient


@pytest.fixture
def fake_client():
	return FakeClient()


@pytest.fixture
def capabilities():
	"""Platen, 300/600 dpi (optical 600), BW1/GS8/RGB24, 0-216 x 0-297 mm."""
	doc = ResponseDocument.from_bytes(WSDResponses.configuration())
	return ScannerCapabilities.from_wsd(doc)


@pytest.fixture
def options(capabilities):
	return OptionTable.build(capabilities)


@pytest.fixture
def transport_error():
	return TransportError("connection refused")
