#!/usr/bin/env python3
"""
XML Structure Renderers
=======================
Read-only views over the StructuralDescriptor tree from structure_builder:

1. render_tree      — box-drawing skeleton with @attributes, #text markers
                      and (xN) / (xmin..max) repetition counts.
2. render_outline   — nested key/value outline with occurrence ranges,
                      annotated attributes and inferred text types.
3. outline_to_dict  — the same outline as a JSON-ready dict.
4. render_xsd       — an inferred XSD document built with lxml.

None of these mutate the descriptors they are given.
"""
from __future__ import annotations

import re
from typing import Iterable

from lxml import etree

from structure_builder import (
    TYPE_BOOLEAN,
    TYPE_DATE,
    TYPE_DECIMAL,
    TYPE_INTEGER,
    TYPE_STRING,
    StructuralDescriptor,
    attribute_annotation,
    attribute_use,
    classify_text,
    count_label,
    is_enum_attribute,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

XS = "http://www.w3.org/2001/XMLSchema"
XS_PREFIX = f"{{{XS}}}"

XSD_TYPES = {
    TYPE_STRING: "xs:string",
    TYPE_INTEGER: "xs:integer",
    TYPE_DECIMAL: "xs:decimal",
    TYPE_DATE: "xs:dateTime",
    TYPE_BOOLEAN: "xs:boolean",
}
DATE_ONLY_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


# ---------------------------------------------------------------------------
# Tree view
# ---------------------------------------------------------------------------

def render_tree(descriptor: StructuralDescriptor, depth: int | None = None,
                show_attributes: bool = True, show_counts: bool = True) -> str:
    """Render the structural skeleton.

    The root is depth 1. A node sitting at `depth` is printed but its
    attributes and children are not.
    """
    lines: list[str] = []
    _tree_lines(descriptor, lines, "", True, True, 1, depth,
                show_attributes, show_counts)
    return "\n".join(lines)


def _tree_lines(node: StructuralDescriptor, lines: list[str], prefix: str,
                is_last: bool, is_root: bool, level: int, depth: int | None,
                show_attributes: bool, show_counts: bool):
    connector = "" if is_root else (LAST_BRANCH if is_last else BRANCH)
    label = count_label(node) if show_counts else ""
    lines.append(f"{prefix}{connector}{node.name}" + (f"  {label}" if label else ""))

    if depth is not None and level >= depth:
        return

    child_prefix = "" if is_root else prefix + (SPACE if is_last else PIPE)

    # (label, descriptor-or-None) in display order
    items: list[tuple[str, StructuralDescriptor | None]] = []
    if show_attributes:
        items.extend((f"@{name}", None) for name in sorted(node.attributes))
    if node.has_mixed_content:
        items.append(("#text", None))
    items.extend((name, child) for name, child in node.children.items())

    for i, (item_label, child) in enumerate(items):
        item_is_last = i == len(items) - 1
        if child is None:
            connector = LAST_BRANCH if item_is_last else BRANCH
            lines.append(f"{child_prefix}{connector}{item_label}")
        else:
            _tree_lines(child, lines, child_prefix, item_is_last, False,
                        level + 1, depth, show_attributes, show_counts)


# ---------------------------------------------------------------------------
# Outline (text and JSON)
# ---------------------------------------------------------------------------

def _annotated_attributes(node: StructuralDescriptor) -> list[str]:
    return [attribute_annotation(attr, node.instance_count)
            for attr in node.attributes.values()]


def _outline_fields(node: StructuralDescriptor) -> list[tuple[str, str]]:
    """Scalar outline fields for one descriptor, in display order."""
    fields = []
    rng = node.occurrence_range
    if rng.is_repeatable:
        fields.append(("occurs", rng.label))
    if rng.is_optional:
        fields.append(("optional", "yes"))
    if node.attributes:
        fields.append(("attrs", f"[{', '.join(_annotated_attributes(node))}]"))
    if node.has_text and not node.has_children:
        fields.append(("text", node.text_type))
    return fields


def render_outline(descriptor: StructuralDescriptor) -> str:
    """Nested outline. Leaf children collapse to one-line records."""
    lines: list[str] = []
    _outline_lines(descriptor, lines, "")
    return "\n".join(lines)


def _outline_lines(node: StructuralDescriptor, lines: list[str], indent: str):
    lines.append(f"{indent}{node.name}:")
    inner = indent + "  "
    for key, value in _outline_fields(node):
        lines.append(f"{inner}{key}: {value}")
    if node.has_text and node.has_children:
        lines.append(f"{inner}mixed: {node.text_type}")
    if not node.children:
        return
    lines.append(f"{inner}children: [{', '.join(node.children)}]")
    for child in node.children.values():
        if child.has_children:
            _outline_lines(child, lines, inner)
        else:
            record = ", ".join(f"{k}: {v}" for k, v in _outline_fields(child))
            lines.append(f"{inner}{child.name}: {{{record}}}")


def outline_to_dict(node: StructuralDescriptor) -> dict:
    """JSON-ready outline of one descriptor (without its own name key)."""
    result: dict = {}
    rng = node.occurrence_range
    if node.instance_count > 1:
        result["count"] = node.instance_count
    if rng.is_repeatable:
        result["occurs"] = rng.label
    if rng.is_optional:
        result["optional"] = True
    if node.attributes:
        result["attrs"] = _annotated_attributes(node)
    if node.children:
        result["children"] = list(node.children)
        for name, child in node.children.items():
            result[name] = outline_to_dict(child)
    if node.has_text:
        result["text"] = node.text_type
    return result


def outline_document(descriptors: Iterable[StructuralDescriptor]) -> dict:
    """Top-level JSON document: root name -> outline."""
    return {d.name: outline_to_dict(d) for d in descriptors}


# ---------------------------------------------------------------------------
# XSD
# ---------------------------------------------------------------------------

def xsd_type(samples: list[str]) -> str:
    """XSD built-in type for a set of text or attribute values."""
    kind = classify_text(samples)
    if kind == TYPE_DATE and all(DATE_ONLY_RE.fullmatch(s) for s in samples):
        return "xs:date"
    return XSD_TYPES.get(kind, "xs:string")


def _xs(parent, tag: str, **attrs) -> etree._Element:
    # keyword order is attribute order in the output
    elem = etree.SubElement(parent, f"{XS_PREFIX}{tag}")
    for key, value in attrs.items():
        elem.set(key, value)
    return elem


def _add_attribute_declarations(parent, node: StructuralDescriptor):
    for attr in node.attributes.values():
        use = attribute_use(attr, node.instance_count)
        values = attr.sorted_values()
        if is_enum_attribute(attr):
            decl = _xs(parent, "attribute", name=attr.name, use=use)
            restriction = _xs(_xs(decl, "simpleType"), "restriction",
                              base="xs:string")
            for value in values:
                _xs(restriction, "enumeration", value=value)
        else:
            _xs(parent, "attribute", name=attr.name,
                type=xsd_type(values) if values else "xs:string", use=use)


def _add_element_declaration(parent, node: StructuralDescriptor):
    rng = node.occurrence_range
    occurs = {}
    if rng.is_optional:
        occurs["minOccurs"] = "0"
    if rng.is_repeatable:
        occurs["maxOccurs"] = "unbounded"

    has_attrs = node.has_attributes
    has_children = node.has_children
    has_text = node.has_text

    if not has_children and not has_attrs:
        if has_text:
            _xs(parent, "element", name=node.name,
                type=xsd_type(node.text_samples), **occurs)
        else:
            _xs(parent, "element", name=node.name, **occurs)
        return

    element = _xs(parent, "element", name=node.name, **occurs)
    if has_children:
        complex_type = _xs(element, "complexType")
        if has_text:
            complex_type.set("mixed", "true")
        sequence = _xs(complex_type, "sequence")
        for child in node.children.values():
            _add_element_declaration(sequence, child)
        _add_attribute_declarations(complex_type, node)
    elif has_text:
        simple_content = _xs(_xs(element, "complexType"), "simpleContent")
        extension = _xs(simple_content, "extension",
                        base=xsd_type(node.text_samples))
        _add_attribute_declarations(extension, node)
    else:
        _add_attribute_declarations(_xs(element, "complexType"), node)


def build_xsd(descriptors: Iterable[StructuralDescriptor]) -> etree._Element:
    schema = etree.Element(f"{XS_PREFIX}schema", nsmap={"xs": XS})
    for descriptor in descriptors:
        _add_element_declaration(schema, descriptor)
    return schema


def render_xsd(descriptors: Iterable[StructuralDescriptor]) -> str:
    """Serialize the inferred schema, XML declaration included."""
    schema = build_xsd(descriptors)
    return etree.tostring(schema, pretty_print=True, xml_declaration=True,
                          encoding="UTF-8").decode("utf-8")
