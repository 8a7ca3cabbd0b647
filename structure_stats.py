#!/usr/bin/env python3
"""
XML Document Statistics
=======================
Per-instance views over parsed XmlNode trees, complementing the merged
structure in structure_builder:

  tags   — every element name with how often it occurs
  stat   — size, element count, depth, namespaces and top-level children
           of a single document
  attrs  — every attribute by element path, with its distinct values

Unlike the merger these walk the raw instance tree, so counts are plain
totals rather than per-parent occurrence ranges. With several documents,
tag counts are summed and attribute value sets are unioned; stats stay
one per document.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from structure_builder import XmlNodeLike, is_namespace_attribute

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SORT_BY_COUNT = "count"
SORT_BY_NAME = "name"
SORT_ORDERS = (SORT_BY_COUNT, SORT_BY_NAME)

# attrs listing: values are printed inline up to this many (unless --values)
VALUE_LIST_LIMIT = 10

SIZE_UNITS = ("KB", "MB", "GB", "TB")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class TagCount:
    name: str
    count: int

    def to_dict(self) -> dict:
        return {"name": self.name, "count": self.count}


@dataclass
class DocumentStats:
    """Quick overview of one parsed document."""
    file: str
    file_size: int                      # bytes of raw input
    root: str
    elements: int
    max_depth: int
    root_namespaces: dict[str, str] = field(default_factory=dict)
    namespaces: list[str] = field(default_factory=list)
    top_level: list[TagCount] = field(default_factory=list)

    @property
    def root_display(self) -> str:
        """'<feed xmlns="urn:x">' - the root tag with its own declarations."""
        decls = " ".join(f'{key}="{uri}"'
                         for key, uri in self.root_namespaces.items())
        return f"<{self.root} {decls}>" if decls else f"<{self.root}>"

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "fileSize": self.file_size,
            "root": self.root,
            "elements": self.elements,
            "maxDepth": self.max_depth,
            "namespaces": self.namespaces,
            "topLevel": [t.to_dict() for t in self.top_level],
        }


# ---------------------------------------------------------------------------
# Tree measurements
# ---------------------------------------------------------------------------

def count_nodes(node: XmlNodeLike) -> int:
    """Element instances in a raw tree, the node itself included."""
    return 1 + sum(count_nodes(child) for child in node.children)


def tree_depth(node: XmlNodeLike, depth: int = 1) -> int:
    """Depth of the deepest element; a childless root is depth 1."""
    if not node.children:
        return depth
    return max(tree_depth(child, depth + 1) for child in node.children)


def declared_namespaces(node: XmlNodeLike) -> dict[str, str]:
    # optional on XmlNodeLike; only the lxml reader fills it in
    return dict(getattr(node, "namespaces", None) or {})


def collect_namespace_uris(node: XmlNodeLike,
                           found: list[str] | None = None) -> list[str]:
    """Distinct namespace URIs declared anywhere, in document order."""
    if found is None:
        found = []
    for uri in declared_namespaces(node).values():
        if uri not in found:
            found.append(uri)
    for child in node.children:
        collect_namespace_uris(child, found)
    return found


def top_level_counts(node: XmlNodeLike) -> list[TagCount]:
    """Direct children of the root grouped by name, first-seen order."""
    counts: dict[str, int] = {}
    for child in node.children:
        counts[child.name] = counts.get(child.name, 0) + 1
    return [TagCount(name, count) for name, count in counts.items()]


# ---------------------------------------------------------------------------
# tags
# ---------------------------------------------------------------------------

def collect_tag_counts(roots: Iterable[XmlNodeLike],
                       max_depth: int | None = None) -> dict[str, int]:
    """Occurrences of every element name, summed over all roots.

    max_depth limits the walk (root = depth 1); None walks everything.
    """
    counts: dict[str, int] = {}

    def walk(node: XmlNodeLike, depth: int):
        if max_depth is not None and depth > max_depth:
            return
        counts[node.name] = counts.get(node.name, 0) + 1
        for child in node.children:
            walk(child, depth + 1)

    for root in roots:
        walk(root, 1)
    return counts


def sort_tag_counts(counts: dict[str, int],
                    order: str = SORT_BY_COUNT) -> list[TagCount]:
    """Most frequent first (ties alphabetical), or purely alphabetical."""
    tags = [TagCount(name, count) for name, count in counts.items()]
    if order == SORT_BY_NAME:
        return sorted(tags, key=lambda t: (t.name.lower(), t.name))
    if order != SORT_BY_COUNT:
        raise ValueError(f"Unknown sort order: {order!r}")
    return sorted(tags, key=lambda t: (-t.count, t.name.lower(), t.name))


def format_tag_counts(tags: list[TagCount]) -> str:
    """Right-aligned counts, two spaces, then the name."""
    if not tags:
        return ""
    width = len(str(max(t.count for t in tags)))
    return "\n".join(f"{t.count:>{width}}  {t.name}" for t in tags)


# ---------------------------------------------------------------------------
# stat
# ---------------------------------------------------------------------------

def compute_document_stats(root: XmlNodeLike, file: str,
                           file_size: int) -> DocumentStats:
    return DocumentStats(
        file=file,
        file_size=file_size,
        root=root.name,
        elements=count_nodes(root),
        max_depth=tree_depth(root),
        root_namespaces=declared_namespaces(root),
        namespaces=collect_namespace_uris(root),
        top_level=top_level_counts(root),
    )


def format_size(size: int) -> str:
    """1023 -> '1023 B', 1536 -> '1.5 KB'; tops out at TB."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == SIZE_UNITS[-1]:
            break
    return f"{value:.1f} {unit}"


def format_document_stats(stats: DocumentStats) -> str:
    lines = [
        f"File:       {stats.file} ({format_size(stats.file_size)})",
        f"Root:       {stats.root_display}",
        f"Elements:   {stats.elements:,}",
        f"Max depth:  {stats.max_depth}",
    ]
    if stats.namespaces:
        lines.append(f"Namespaces: {', '.join(stats.namespaces)}")
    if stats.top_level:
        parts = [f"<{t.name}> x {t.count}" for t in stats.top_level]
        lines.append(f"Top-level:  {', '.join(parts)}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# attrs
# ---------------------------------------------------------------------------

def discover_attribute_paths(
        roots: Iterable[XmlNodeLike]) -> dict[str, set[str]]:
    """Map 'parent/child/@attr' paths to the distinct values seen there.

    Paths are keyed by the full element path from the root, so the same
    attribute name under different parents is reported separately.
    Namespace declarations are skipped.
    """
    paths: dict[str, set[str]] = {}

    def walk(node: XmlNodeLike, parent_path: str):
        element_path = f"{parent_path}/{node.name}" if parent_path else node.name
        for attr_name, value in node.attributes.items():
            if is_namespace_attribute(attr_name):
                continue
            paths.setdefault(f"{element_path}/@{attr_name}", set()).add(value)
        for child in node.children:
            walk(child, element_path)

    for root in roots:
        walk(root, "")
    return paths


def attribute_paths_to_list(paths: dict[str, set[str]]) -> list[dict]:
    return [{"path": path, "uniqueCount": len(values),
             "values": sorted(values)}
            for path, values in paths.items()]


def format_attribute_paths(paths: dict[str, set[str]],
                           show_all_values: bool = False) -> str:
    """One line per path: padded path, unique-value count, and the sorted
    values when there are few enough (or show_all_values is set)."""
    if not paths:
        return ""
    width = max(len(path) for path in paths)
    lines = []
    for path, values in paths.items():
        plural = "" if len(values) == 1 else "s"
        line = f"{path:<{width}}  {len(values)} unique value{plural}"
        if show_all_values or len(values) <= VALUE_LIST_LIMIT:
            line += f"  [{', '.join(sorted(values))}]"
        lines.append(line)
    return "\n".join(lines)
