#!/usr/bin/env python3
"""
XML Document Reader
===================
Turns raw XML (bytes, text, files or stdin) into the XmlNode tree that
structure_builder merges.

Conversion rules:
  - Tags and attribute names keep their document prefix ("dc:title");
    unprefixed names are bare local names.
  - Namespace declarations never reach the attributes (lxml keeps them in
    nsmap, not in attrib); each node lists the ones it declares itself in
    XmlNode.namespaces.
  - Element text is the element's own text plus the tails of its children,
    untrimmed; comments and processing instructions are dropped but their
    tails are kept. CDATA sections arrive as ordinary text.
"""
from __future__ import annotations

import sys
from pathlib import Path

from lxml import etree

from structure_builder import XmlNode

XML_NS = "http://www.w3.org/XML/1998/namespace"


def _make_parser(encoding: str | None = None) -> etree.XMLParser:
    return etree.XMLParser(encoding=encoding, resolve_entities=False,
                           no_network=True)


def _qualified_name(tag: str, prefixes: dict[str, str]) -> str:
    """'{uri}local' -> 'prefix:local' using the in-scope prefix map."""
    qname = etree.QName(tag)
    if not qname.namespace:
        return qname.localname
    prefix = prefixes.get(qname.namespace)
    return f"{prefix}:{qname.localname}" if prefix else qname.localname


def _declared_namespaces(elem, inherited: dict) -> dict[str, str]:
    """xmlns declarations made on this element itself, keyed as written."""
    return {(f"xmlns:{prefix}" if prefix else "xmlns"): uri
            for prefix, uri in elem.nsmap.items()
            if inherited.get(prefix) != uri}


def _to_node(elem, inherited: dict | None = None) -> XmlNode:
    prefixes = {uri: prefix for prefix, uri in elem.nsmap.items() if prefix}
    prefixes[XML_NS] = "xml"

    name = etree.QName(elem).localname
    if elem.prefix:
        name = f"{elem.prefix}:{name}"

    attributes = {_qualified_name(key, prefixes): value
                  for key, value in elem.attrib.items()}

    children = []
    text_parts = [elem.text or ""]
    for child in elem:
        # comments, PIs and unresolved entities have non-string tags
        if isinstance(child.tag, str):
            children.append(_to_node(child, elem.nsmap))
        text_parts.append(child.tail or "")

    return XmlNode(name=name, attributes=attributes, children=children,
                   text="".join(text_parts),
                   namespaces=_declared_namespaces(elem, inherited or {}))


def parse_xml(data: bytes | str) -> XmlNode:
    """Parse a whole document and return its root element as an XmlNode.

    Raises ValueError on empty input and lxml.etree.XMLSyntaxError on
    malformed input.
    """
    if not data.strip():
        raise ValueError("Empty input")
    encoding = None
    if isinstance(data, str):
        # already decoded: any encoding declaration in the prolog is stale
        data = data.encode("utf-8")
        encoding = "utf-8"
    root = etree.fromstring(data, parser=_make_parser(encoding))
    return _to_node(root)


def read_source(path: str | None) -> bytes:
    """Read a file, or stdin when path is None or '-'."""
    if path is None or path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def parse_xml_file(path: str | None) -> XmlNode:
    return parse_xml(read_source(path))


def discover_xml_files(directory: str) -> list[str]:
    """*.xml files in a directory and one level of subdirectories."""
    xml_dir = Path(directory)
    if not xml_dir.is_dir():
        raise NotADirectoryError(f"XML directory not found: {directory}")
    xml_files = sorted(str(f) for f in xml_dir.glob("*.xml"))
    for subdir in sorted(xml_dir.iterdir()):
        if subdir.is_dir():
            xml_files.extend(sorted(str(f) for f in subdir.glob("*.xml")))
    return xml_files
