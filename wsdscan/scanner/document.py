# (c) Copyright Datacraft, 2026
"""Query helpers over WS-Scan response documents."""
import logging
import xml.etree.ElementTree as ET
from typing import Iterable

from .errors import TransportError

logger = logging.getLogger(__name__)


# WS-Scan / SOAP namespaces
NAMESPACES = {
	'soap': 'http://www.w3.org/2003/05/soap-envelope',
	'wsa': 'http://schemas.xmlsoap.org/ws/2004/08/addressing',
	'wscn': 'http://schemas.microsoft.com/windows/2006/08/wdp/scan',
	'xop': 'http://www.w3.org/2004/08/xop/include',
}

WSCN = NAMESPACES['wscn']
XOP = NAMESPACES['xop']
SOAP = NAMESPACES['soap']


def qname(ns: str, name: str) -> str:
	return f"{{{ns}}}{name}"


def is_true(node: ET.Element | None) -> bool:
	"""Check node text for truthness ("true" or "1")."""
	if node is None or node.text is None:
		return False
	return node.text.strip() in ('true', '1')


class ResponseDocument:
	"""
	Read-only view of a parsed response.

	Lookups default to the WS-Scan namespace and always search the
	whole subtree below the given node, first match in document order.
	"""

	def __init__(self, root: ET.Element):
		self.root = root

	@classmethod
	def from_bytes(cls, data: bytes | str) -> "ResponseDocument":
		"""Parse XML, raising TransportError for malformed content."""
		try:
			root = ET.fromstring(data)
		except ET.ParseError as e:
			raise TransportError(f"Malformed response document: {e}", e)
		return cls(root)

	@property
	def body(self) -> ET.Element:
		"""SOAP body if present, otherwise the document root."""
		body = self.root.find(qname(SOAP, 'Body'))
		return body if body is not None else self.root

	def find(
		self,
		name: str,
		ns: str = WSCN,
		parent: ET.Element | None = None,
	) -> ET.Element | None:
		"""Find first element matching namespace+name under parent."""
		node = self.root if parent is None else parent
		if node.tag == qname(ns, name):
			return node
		return node.find(f".//{qname(ns, name)}")

	def find_first(
		self,
		names: Iterable[str],
		ns: str = WSCN,
		parent: ET.Element | None = None,
	) -> ET.Element | None:
		"""Try candidate names in priority order, first match wins."""
		for name in names:
			node = self.find(name, ns, parent)
			if node is not None:
				return node
		return None

	def children(
		self,
		parent: ET.Element | None,
		name: str,
		ns: str = WSCN,
	) -> list[ET.Element]:
		if parent is None:
			return []
		return parent.findall(qname(ns, name))

	def count_children(
		self,
		parent: ET.Element | None,
		name: str,
		ns: str = WSCN,
	) -> int:
		"""Count direct children by qualified name."""
		return len(self.children(parent, name, ns))

	def text(
		self,
		name: str,
		ns: str = WSCN,
		parent: ET.Element | None = None,
	) -> str | None:
		node = self.find(name, ns, parent)
		if node is None or node.text is None:
			return None
		return node.text.strip()

	def fault(self) -> str | None:
		"""Return the SOAP fault reason, if the response is a fault."""
		fault = self.find('Fault', SOAP)
		if fault is None:
			return None
		reason = self.find('Text', SOAP, fault)
		if reason is not None and reason.text:
			return reason.text.strip()
		return 'SOAP fault'
