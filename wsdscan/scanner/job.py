# (c) Copyright Datacraft, 2026
"""
Scan job lifecycle.

The controller drives one job at a time through
Idle -> Creating -> Active -> Retrieving -> Idle. Protocol faults move
it through Error back to Idle with the job ids released, cancellation
goes through Cancelling and always ends in Idle.
"""
import logging

from wsdscan.config.settings import Settings, get_settings

from .base import JobState, RasterDescriptor, ScanJob, ScanTicket
from .capabilities import (
	InputSource,
	ScannerCapabilities,
	color_mode_to_depth,
	mm_to_thousandths,
)
from .decode import DecodedImage
from .document import ResponseDocument
from .errors import (
	DecodeError,
	DeviceBusyError,
	InvalidResponseError,
	NoMemoryError,
	ScanError,
	ScanIOError,
	ScanStatus,
	error_for_status,
)
from .options import OptionIndex, OptionTable
from .pipeline import ImagePipeline
from .transport import WSDClient

logger = logging.getLogger(__name__)


STATE_IDLE = 'Idle'
STATE_PROCESSING = 'Processing'

# Conditions reported while idle, anything else is an I/O error
IDLE_CONDITIONS = {
	'InputTrayEmpty': ScanStatus.NO_DOCUMENTS,
	'MediaJam': ScanStatus.JAMMED,
}


def map_scanner_status(state: str | None, condition: str | None = None) -> ScanStatus:
	"""
	Map remote scanner state and active condition to a local status.

	Args:
		state: ScannerState text
		condition: name of the first active DeviceCondition, None if
			there is none; an empty string is a condition without name

	Returns:
		Local status, never EOF
	"""
	if state == STATE_IDLE:
		if condition is None:
			return ScanStatus.GOOD
		return IDLE_CONDITIONS.get(condition, ScanStatus.IO_ERROR)
	if state == STATE_PROCESSING:
		return ScanStatus.BUSY
	return ScanStatus.IO_ERROR


def parse_scanner_status(doc: ResponseDocument) -> tuple[str, str | None]:
	"""
	Extract scanner state and active condition from a status response.

	Raises:
		ScanIOError: no ScannerState in the response
	"""
	status = doc.find('ScannerStatus')
	state = doc.text('ScannerState', parent=status)
	if state is None:
		logger.error("No ScannerState in GetScannerElements response")
		raise ScanIOError("No ScannerState in status response")

	condition = None
	device_condition = doc.find('DeviceCondition', parent=doc.find('ActiveConditions', parent=status))
	if device_condition is not None:
		condition = doc.text('Name', parent=device_condition) or ''
	logger.debug(f"Scanner state {state}, condition {condition}")
	return state, condition


def build_ticket(
	options: OptionTable,
	caps: ScannerCapabilities,
	settings: Settings | None = None,
) -> ScanTicket:
	"""
	Build job parameters from current option values.

	Width and height are option values in millimetres, 0 meaning the
	full platen extent. Exposure settings are sent only for active options.
	"""
	settings = settings or get_settings()
	width = options.value(OptionIndex.WIDTH) or caps.area.max_width
	height = options.value(OptionIndex.HEIGHT) or caps.area.max_height

	ticket = ScanTicket(
		input_source=InputSource(options.value(OptionIndex.SCAN_SOURCE)),
		resolution=options.value(OptionIndex.RESOLUTION),
		color_depth=options.value(OptionIndex.COLOR),
		width=mm_to_thousandths(width),
		height=mm_to_thousandths(height),
		content_type=settings.content_type,
		format=settings.document_format,
		job_name=settings.job_name,
		requesting_user=settings.requesting_user,
	)
	if options.is_active(OptionIndex.AUTO_EXPOSURE):
		ticket.auto_exposure = options.value(OptionIndex.AUTO_EXPOSURE)
	if options.is_active(OptionIndex.BRIGHTNESS):
		ticket.brightness = options.value(OptionIndex.BRIGHTNESS)
	if options.is_active(OptionIndex.CONTRAST):
		ticket.contrast = options.value(OptionIndex.CONTRAST)
	if options.is_active(OptionIndex.SHARPNESS):
		ticket.sharpness = options.value(OptionIndex.SHARPNESS)
	return ticket


class ScanJobController:
	"""
	State machine for the scan job of one session.

	At most one job is live at a time. Every remote call is a blocking
	round trip and nothing is retried.
	"""

	def __init__(self, client: WSDClient, settings: Settings | None = None):
		self._client = client
		self._settings = settings or get_settings()
		self._pipeline = ImagePipeline(client)
		self._state = JobState.IDLE
		self._job: ScanJob | None = None
		# Job id known before the job is fully created
		self._pending_id: str | None = None

	@property
	def state(self) -> JobState:
		return self._state

	@property
	def job(self) -> ScanJob | None:
		return self._job

	@property
	def job_id(self) -> str | None:
		return self._job.id if self._job is not None else self._pending_id

	@property
	def is_live(self) -> bool:
		return self.job_id is not None

	def poll_status(self) -> ScanStatus:
		"""Query the device and map its state."""
		doc = self._client.get_scanner_status()
		state, condition = parse_scanner_status(doc)
		status = map_scanner_status(state, condition)
		logger.info(f"Scanner status {state}/{condition} -> {status.value}")
		return status

	def start(self, ticket: ScanTicket) -> ScanJob:
		"""
		Create a scan job.

		Raises:
			DeviceBusyError: a job is live or the device is processing
			NoDocumentsError: input tray empty
			JammedError: media jam
			ScanIOError: status or job creation failed
		"""
		if self.is_live or self._state is not JobState.IDLE:
			logger.error(f"Job already live (state {self._state.value})")
			raise DeviceBusyError("A scan job is already live")

		status = self.poll_status()
		if status is ScanStatus.BUSY:
			raise DeviceBusyError("Scanner is busy")
		if status is not ScanStatus.GOOD:
			raise error_for_status(status, f"Scanner not ready ({status.value})")

		self._state = JobState.CREATING
		logger.info(
			f"CreateScanJob {ticket.input_source.value} {ticket.resolution} dpi "
			f"{ticket.color_depth} bit {ticket.width}x{ticket.height}"
		)
		try:
			doc = self._client.create_scan_job(ticket)
			self._job = self._parse_job(doc, ticket)
		except ScanError as e:
			self._fail(f"CreateScanJob failed: {e}")
			raise ScanIOError(f"Cannot create scan job: {e}") from e

		self._pending_id = None
		self._state = JobState.ACTIVE
		logger.info(f"Job {self._job.id} active, {self._job.raster}")
		return self._job

	def retrieve(self) -> DecodedImage:
		"""
		Fetch and decode the image of the active job.

		On success the job ids are released and the controller is Idle.

		Raises:
			ScanIOError: no active job, device not processing, or transport fault
			InvalidResponseError: bad content reference
			DecodeError: payload could not be decoded
			NoMemoryError: raster buffer could not be allocated
		"""
		if self._job is None or self._state is not JobState.ACTIVE:
			raise ScanIOError("No active scan job")

		try:
			status = self.poll_status()
		except ScanError as e:
			self._fail(f"Status poll failed: {e}")
			raise ScanIOError(f"Cannot query scanner status: {e}") from e
		if status is not ScanStatus.BUSY:
			self._fail(f"Scanner not processing ({status.value})")
			raise ScanIOError(f"Scanner not processing ({status.value})")

		self._state = JobState.RETRIEVING
		try:
			image = self._pipeline.run(self._job)
		except (DecodeError, InvalidResponseError, NoMemoryError) as e:
			self._fail(f"Image retrieval failed: {e}")
			raise
		except ScanError as e:
			self._fail(f"Image retrieval failed: {e}")
			raise ScanIOError(f"Cannot retrieve image: {e}") from e
		except Exception as e:
			self._fail(f"Unexpected error retrieving image: {e!r}")
			raise ScanIOError(f"Cannot retrieve image: {e}") from e

		logger.info(f"Job {self._job.id} complete")
		self._clear()
		return image

	def cancel(self):
		"""Best-effort remote cancel, local state is always cleared."""
		job_id = self.job_id
		if job_id is not None:
			self._state = JobState.CANCELLING
			logger.info(f"Cancelling job {job_id}")
			try:
				self._client.cancel_job(job_id)
			except ScanError as e:
				logger.error(f"Cancel of job {job_id} failed: {e}")
		self._clear()

	def _fail(self, reason: str):
		logger.error(reason)
		self._state = JobState.ERROR
		self.cancel()

	def _clear(self):
		self._job = None
		self._pending_id = None
		self._state = JobState.IDLE

	def _require(self, doc: ResponseDocument, name: str, parent=None) -> str:
		value = doc.text(name, parent=parent)
		if not value:
			logger.error(f"No {name} in CreateScanJob response")
			raise ScanIOError(f"No {name} in CreateScanJob response")
		return value

	def _require_int(self, doc: ResponseDocument, name: str, parent=None) -> int:
		value = self._require(doc, name, parent)
		try:
			return int(value)
		except ValueError:
			logger.error(f"{name} is not a number: '{value}'")
			raise ScanIOError(f"Invalid {name} '{value}'")

	def _parse_job(self, doc: ResponseDocument, ticket: ScanTicket) -> ScanJob:
		self._pending_id = self._require(doc, 'JobId')
		token = self._require(doc, 'JobToken')

		image_info = doc.find('MediaFrontImageInfo')
		if image_info is None:
			logger.error("No MediaFrontImageInfo in CreateScanJob response")
			raise ScanIOError("No MediaFrontImageInfo in CreateScanJob response")
		pixels_per_line = self._require_int(doc, 'PixelsPerLine', image_info)
		lines = self._require_int(doc, 'NumberOfLines', image_info)

		color = self._require(doc, 'ColorProcessing')
		depth = color_mode_to_depth(color)
		if depth is None:
			raise ScanIOError(f"Unknown ColorProcessing '{color}'")
		raster = RasterDescriptor.for_color_depth(depth, pixels_per_line, lines)

		return ScanJob(
			id=self._pending_id,
			token=token,
			ticket=ticket,
			raster=raster,
			document_name=self._settings.document_name,
		)
