# (c) Copyright Datacraft, 2026
"""
Command line front end.

Usage::

    # List devices from the device list file
    wsdscan list

    # Show the option table of a device
    wsdscan options http://192.168.1.20:5358/wsd/scan

    # Scan to a file
    wsdscan scan http://192.168.1.20:5358/wsd/scan -o page.png --resolution 300
"""
import argparse
import logging
import sys
from pathlib import Path

from PIL import Image

from wsdscan import __version__
from wsdscan.config.settings import get_settings
from wsdscan.log_config import configure_logging
from wsdscan.scanner.backend import Backend
from wsdscan.scanner.base import FrameFormat, RasterDescriptor
from wsdscan.scanner.errors import ScanError, ScanIOError
from wsdscan.scanner.options import OptionType
from wsdscan.scanner.session import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

# CLI argument -> option name
SCAN_OPTIONS = {
	'source': 'source',
	'resolution': 'resolution',
	'depth': 'depth',
	'width': 'width',
	'height': 'height',
}


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog='wsdscan',
		description='Scan from WS-Scan (WSD) network scanners',
	)
	parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
	parser.add_argument(
		'--config-file',
		type=Path,
		help='Device list file, one "url <address>" per line',
	)
	subparsers = parser.add_subparsers(dest='command', required=True)

	list_parser = subparsers.add_parser('list', help='List configured devices')
	list_parser.add_argument('urls', nargs='*', help='Device URLs instead of the device list file')

	options_parser = subparsers.add_parser('options', help='Show device options')
	options_parser.add_argument('url')

	scan_parser = subparsers.add_parser('scan', help='Scan one page')
	scan_parser.add_argument('url')
	scan_parser.add_argument('-o', '--output', type=Path, required=True)
	scan_parser.add_argument('--source')
	scan_parser.add_argument('--resolution', type=int)
	scan_parser.add_argument('--depth', type=int)
	scan_parser.add_argument('--width', type=int, help='mm, 0 for full width')
	scan_parser.add_argument('--height', type=int, help='mm, 0 for full height')
	scan_parser.add_argument('--chunk-size', type=int, default=DEFAULT_CHUNK_SIZE)
	return parser


def _format_constraint(constraint) -> str:
	if constraint is None:
		return ''
	if isinstance(constraint, tuple):
		return '|'.join(str(value) for value in constraint)
	return f"{constraint.min}..{constraint.max}"


def run_list(backend: Backend, urls: list[str]) -> int:
	backend.init(urls or None)
	for device in backend.enumerate_devices():
		print(f"{device.identifier}\t{device.vendor}\t{device.model}\t{device.type}")
	return 0


def run_options(backend: Backend, url: str) -> int:
	backend.init([url])
	with backend.open(url) as session:
		for index, (descriptor, value) in enumerate(session.options):
			if descriptor.type is OptionType.GROUP:
				print(f"{descriptor.title}:")
				continue
			state = '' if descriptor.is_active else ' [inactive]'
			print(
				f"  #{index} {descriptor.name} = {value} "
				f"({_format_constraint(descriptor.constraint)}) {descriptor.unit.value}{state}"
			)
	return 0


def save_raster(raster: RasterDescriptor, data: bytes, output: Path):
	"""Write decoded 8-bit raster data with Pillow."""
	mode = 'RGB' if raster.format is FrameFormat.RGB else 'L'
	image = Image.frombytes(mode, (raster.pixels_per_line, raster.lines), data)
	image.save(output)
	logger.info(f"Saved {raster.pixels_per_line} x {raster.lines} {mode} image to {output}")


def run_scan(backend: Backend, args: argparse.Namespace) -> int:
	backend.init([args.url])
	with backend.open(args.url) as session:
		for arg, name in SCAN_OPTIONS.items():
			value = getattr(args, arg)
			if value is not None:
				session.set_option_value(session.options.index_of(name), value)

		session.start()
		raster = None
		data = bytearray()
		for chunk in session.iter_read(args.chunk_size):
			if raster is None:
				# decoded raster, only known while the scan is running
				raster = session.get_parameters()
			data.extend(chunk)
		logger.info(f"Read {len(data)} bytes")
		if raster is None:
			raise ScanIOError("No image data")
		save_raster(raster, bytes(data), args.output)
	return 0


def main(argv: list[str] | None = None) -> int:
	args = _build_parser().parse_args(argv)
	settings = get_settings()
	if args.config_file is not None:
		settings = settings.model_copy(update={'config_file': args.config_file})
	configure_logging(settings)

	backend = Backend(settings)
	try:
		if args.command == 'list':
			return run_list(backend, args.urls)
		if args.command == 'options':
			return run_options(backend, args.url)
		return run_scan(backend, args)
	except ScanError as e:
		print(f"wsdscan: {e} ({e.status.value})", file=sys.stderr)
		return 1
	finally:
		backend.exit()


if __name__ == '__main__':
	sys.exit(main())
