#!/usr/bin/env python3
"""
XML Structure Builder
=====================
Folds a parsed XML document into a merged structural summary.

Every group of sibling elements sharing a tag name is collapsed into one
StructuralDescriptor that records:

1. How many times the tag appeared under each parent instance
   (occurrence counts, from which min/max ranges are derived).
2. Every attribute seen, with its distinct value set and how many
   instances carried it.
3. Trimmed text samples, used to infer a coarse value type.
4. The merged child descriptors, in first-seen order.

The resulting tree is consumed by structure_renderers (tree view, outline,
JSON, XSD). Nothing in here parses XML; any object matching XmlNodeLike
can be fed in (structure_reader builds them from lxml).

Usage:
    from structure_builder import XmlNode, build_document_structure

    root = XmlNode("catalog", children=[XmlNode("item", {"sku": "A"})])
    descriptor = build_document_structure(root)
    descriptor.children["item"].occurrence_counts   # [1]
"""
from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, NamedTuple, Protocol, Sequence

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Coarse text types, in classification precedence order
TYPE_INTEGER = "integer"
TYPE_DECIMAL = "decimal"
TYPE_DATE = "date"
TYPE_BOOLEAN = "boolean"
TYPE_STRING = "string"

INTEGER_RE = re.compile(r"-?\d+", re.ASCII)
DECIMAL_RE = re.compile(r"-?\d+(\.\d+)?", re.ASCII)
# Prefix match: trailing seconds fractions / offsets are tolerated
DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2})?)?", re.ASCII)
BOOLEAN_TOKENS = frozenset({"true", "false", "0", "1", "yes", "no"})

# Attribute cardinality bounds for enum annotation (inclusive)
ENUM_MIN_VALUES = 2
ENUM_MAX_VALUES = 10

NAMESPACE_ATTR = "xmlns"
NAMESPACE_ATTR_PREFIX = "xmlns:"


# ---------------------------------------------------------------------------
# Input node contract
# ---------------------------------------------------------------------------

class XmlNodeLike(Protocol):
    """What the merger needs from a parsed element. Text may be untrimmed."""
    name: str
    attributes: Mapping[str, str]
    children: Sequence["XmlNodeLike"]
    text: str


@dataclass
class XmlNode:
    """Plain element record produced by the reader (and handy in tests)."""
    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["XmlNode"] = field(default_factory=list)
    text: str = ""
    namespaces: dict[str, str] = field(default_factory=dict)   # own xmlns decls


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class OccurrenceRange(NamedTuple):
    """Min/max of per-parent occurrence counts."""
    minimum: int
    maximum: int

    @property
    def is_optional(self) -> bool:
        return self.minimum == 0

    @property
    def is_repeatable(self) -> bool:
        return self.maximum > 1

    @property
    def label(self) -> str:
        if self.minimum == self.maximum:
            return str(self.minimum)
        return f"{self.minimum}..{self.maximum}"


@dataclass
class AttributeDescriptor:
    """All values one attribute took across the merged element instances."""
    name: str
    values: set[str] = field(default_factory=set)
    count: int = 0                      # instances carrying the attribute

    def sorted_values(self) -> list[str]:
        return sorted(self.values)

    def absorb(self, other: AttributeDescriptor):
        self.values |= other.values
        self.count += other.count


@dataclass
class StructuralDescriptor:
    """One merged representation of every same-named sibling element.

    Invariant: for each child C, len(C.occurrence_counts) equals
    self.instance_count. Parents lacking a child contribute a 0 entry.
    """
    name: str
    attributes: dict[str, AttributeDescriptor] = field(default_factory=dict)
    children: dict[str, StructuralDescriptor] = field(default_factory=dict)
    occurrence_counts: list[int] = field(default_factory=list)
    has_mixed_content: bool = False
    text_samples: list[str] = field(default_factory=list)

    @property
    def instance_count(self) -> int:
        """Total number of element instances folded into this descriptor."""
        return sum(self.occurrence_counts)

    @property
    def has_text(self) -> bool:
        return bool(self.text_samples)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def has_attributes(self) -> bool:
        return bool(self.attributes)

    @property
    def occurrence_range(self) -> OccurrenceRange:
        return occurrence_range(self.occurrence_counts)

    @property
    def text_type(self) -> str:
        return classify_text(self.text_samples)

    def absorb(self, other: StructuralDescriptor):
        """Fold another descriptor for the same tag into this one.

        `other` is taken over: its children may end up owned by self, so
        callers pass a descriptor they no longer use (see merge_descriptors
        for the non-destructive variant).
        """
        mine = self.instance_count
        theirs = other.instance_count
        self.occurrence_counts.extend(other.occurrence_counts)

        for attr_name, attr in other.attributes.items():
            existing = self.attributes.get(attr_name)
            if existing is None:
                self.attributes[attr_name] = attr
            else:
                existing.absorb(attr)

        self.text_samples.extend(other.text_samples)
        self.has_mixed_content = self.has_mixed_content or other.has_mixed_content

        for child_name, child in self.children.items():
            if child_name not in other.children:
                child.occurrence_counts.extend([0] * theirs)
        for child_name, child in other.children.items():
            existing = self.children.get(child_name)
            if existing is None:
                child.occurrence_counts[:0] = [0] * mine
                self.children[child_name] = child
            else:
                existing.absorb(child)


# ---------------------------------------------------------------------------
# Type classifier
# ---------------------------------------------------------------------------

def classify_text(samples: Sequence[str]) -> str:
    """Classify text samples into one coarse type.

    Every sample must match a rule for it to win; rules are tried from the
    narrowest numeric type outwards, so "0"/"1" come out as integer rather
    than boolean.
    """
    if not samples:
        return TYPE_STRING
    if all(INTEGER_RE.fullmatch(s) for s in samples):
        return TYPE_INTEGER
    if all(DECIMAL_RE.fullmatch(s) for s in samples):
        return TYPE_DECIMAL
    if all(DATE_RE.match(s) for s in samples):
        return TYPE_DATE
    if all(s.lower() in BOOLEAN_TOKENS for s in samples):
        return TYPE_BOOLEAN
    return TYPE_STRING


# ---------------------------------------------------------------------------
# Occurrence ranges
# ---------------------------------------------------------------------------

def occurrence_range(counts: Sequence[int]) -> OccurrenceRange:
    """Reduce per-parent occurrence counts to (min, max).

    An empty list means nothing was ever observed; it yields 0..0.
    """
    if not counts:
        return OccurrenceRange(0, 0)
    return OccurrenceRange(min(counts), max(counts))


def count_label(descriptor: StructuralDescriptor) -> str:
    """Tree-view annotation: '', '(x3)' or '(x1..3)'."""
    rng = descriptor.occurrence_range
    if rng.minimum == rng.maximum:
        return f"(x{rng.minimum})" if rng.minimum > 1 else ""
    return f"(x{rng.minimum}..{rng.maximum})"


# ---------------------------------------------------------------------------
# Attribute aggregation
# ---------------------------------------------------------------------------

def is_namespace_attribute(name: str) -> bool:
    return name == NAMESPACE_ATTR or name.startswith(NAMESPACE_ATTR_PREFIX)


def record_attribute(descriptor: StructuralDescriptor, name: str, value: str):
    """Register one (instance, attribute) pair on a descriptor."""
    if is_namespace_attribute(name):
        return
    attr = descriptor.attributes.get(name)
    if attr is None:
        attr = AttributeDescriptor(name=name)
        descriptor.attributes[name] = attr
    attr.values.add(value)
    attr.count += 1


def is_unique_attribute(attr: AttributeDescriptor, element_count: int) -> bool:
    """Every instance of the element carries a different value."""
    return element_count > 1 and len(attr.values) == element_count


def is_enum_attribute(attr: AttributeDescriptor) -> bool:
    return ENUM_MIN_VALUES <= len(attr.values) <= ENUM_MAX_VALUES


def attribute_annotation(attr: AttributeDescriptor, element_count: int) -> str:
    """Display form shared by the outline renderers.

    'sku(unique)', 'currency(enum:EUR|USD)' or just 'id'.
    """
    if is_unique_attribute(attr, element_count):
        return f"{attr.name}(unique)"
    if is_enum_attribute(attr):
        return f"{attr.name}(enum:{'|'.join(attr.sorted_values())})"
    return attr.name


def attribute_use(attr: AttributeDescriptor, element_count: int) -> str:
    return "required" if attr.count >= element_count else "optional"


# ---------------------------------------------------------------------------
# Structural merge
# ---------------------------------------------------------------------------

def merge_siblings(nodes: Iterable[XmlNodeLike]) -> dict[str, StructuralDescriptor]:
    """Merge one sibling list into descriptors keyed by tag name.

    Tag order is first-seen order. Each descriptor gets exactly one
    occurrence count for this scope: the size of its group.
    """
    groups: dict[str, list[XmlNodeLike]] = {}
    for node in nodes:
        groups.setdefault(node.name, []).append(node)

    merged: dict[str, StructuralDescriptor] = {}
    for name, instances in groups.items():
        descriptor = StructuralDescriptor(name=name,
                                          occurrence_counts=[len(instances)])
        for seen, instance in enumerate(instances):
            _fold_instance(descriptor, instance, seen)
        merged[name] = descriptor
    return merged


def _fold_instance(descriptor: StructuralDescriptor, node: XmlNodeLike,
                   seen: int):
    """Fold one element instance; `seen` instances were folded before it."""
    for attr_name, value in node.attributes.items():
        record_attribute(descriptor, attr_name, value)

    text = (node.text or "").strip()
    if text:
        descriptor.text_samples.append(text)
        if node.children:
            descriptor.has_mixed_content = True

    scope = merge_siblings(node.children)
    for child_name, child in scope.items():
        existing = descriptor.children.get(child_name)
        if existing is None:
            # absent from every earlier instance
            child.occurrence_counts[:0] = [0] * seen
            descriptor.children[child_name] = child
        else:
            existing.absorb(child)
    for child_name, existing in descriptor.children.items():
        if child_name not in scope:
            existing.occurrence_counts.append(0)


def build_document_structure(root: XmlNodeLike) -> StructuralDescriptor:
    """Merge a whole document. The root is a singleton group: counts [1]."""
    return merge_siblings([root])[root.name]


def merge_descriptors(first: StructuralDescriptor,
                      second: StructuralDescriptor) -> StructuralDescriptor:
    """Return the merge of two same-tag descriptors without touching either.

    Idempotent: merging a descriptor with itself (or an equal one) yields
    a copy of it, not a double count of the same instances.
    """
    if first.name != second.name:
        raise ValueError(
            f"Cannot merge descriptors for different tags: "
            f"{first.name!r} and {second.name!r}")
    merged = copy.deepcopy(first)
    if first is second or first == second:
        return merged
    merged.absorb(copy.deepcopy(second))
    return merged


def build_corpus_structure(
        roots: Iterable[XmlNodeLike]) -> dict[str, StructuralDescriptor]:
    """Merge several documents. Each root is its own parent scope, so a root
    tag shared by N documents ends up with occurrence counts [1] * N."""
    corpus: dict[str, StructuralDescriptor] = {}
    for root in roots:
        descriptor = build_document_structure(root)
        existing = corpus.get(descriptor.name)
        if existing is None:
            corpus[descriptor.name] = descriptor
        else:
            existing.absorb(descriptor)
    return corpus


def count_elements(descriptor: StructuralDescriptor) -> int:
    """Total element instances in a merged tree."""
    return descriptor.instance_count + sum(
        count_elements(child) for child in descriptor.children.values())
