#!/usr/bin/env python3
"""
XML Structure Explorer
======================
Summarises the structure of one or more XML documents. Same-named sibling
elements are merged, so a 10,000-record feed prints as a compact skeleton.

Structural views (merged across documents):
  tree     — box-drawing skeleton with repetition counts
  outline  — nested outline with occurrence ranges, attribute annotations
             and inferred text types (--json for machine-readable output)
  xsd      — an inferred XSD schema

Instance views:
  tags     — every element name with its total count
  stat     — quick overview of each document (size, depth, namespaces)
  attrs    — every attribute by element path with its distinct values

Usage:
    python structure_explorer.py tree catalog.xml --depth 3
    python structure_explorer.py outline --json catalog.xml
    python structure_explorer.py xsd --xml-dir ./feeds -o feeds.xsd
    python structure_explorer.py tags --sort name catalog.xml
    cat catalog.xml | python structure_explorer.py tree

When several documents are given their structures are merged: each
document counts as one occurrence of its root element.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from lxml import etree

from structure_builder import build_corpus_structure, count_elements
from structure_reader import discover_xml_files, parse_xml, read_source
from structure_renderers import (
    outline_document,
    render_outline,
    render_tree,
    render_xsd,
)
from structure_stats import (
    SORT_BY_COUNT,
    SORT_ORDERS,
    attribute_paths_to_list,
    collect_tag_counts,
    compute_document_stats,
    count_nodes,
    discover_attribute_paths,
    format_attribute_paths,
    format_document_stats,
    format_tag_counts,
    sort_tag_counts,
)

STRUCTURE_COMMANDS = ("tree", "outline", "xsd")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render(args: argparse.Namespace, corpus: dict) -> str:
    """Produce the requested structural view for every merged root."""
    descriptors = list(corpus.values())
    if args.command == "tree":
        return "\n\n".join(
            render_tree(d, depth=args.depth, show_attributes=args.attrs,
                        show_counts=args.counts)
            for d in descriptors)
    if args.command == "outline":
        if args.json:
            return json.dumps(outline_document(descriptors), indent=2,
                              ensure_ascii=False)
        return "\n\n".join(render_outline(d) for d in descriptors)
    return render_xsd(descriptors)


def render_instances(args: argparse.Namespace, documents: list) -> str:
    """tags / stat / attrs over (label, raw bytes, root) triples."""
    roots = [root for _, _, root in documents]
    if args.command == "tags":
        tags = sort_tag_counts(collect_tag_counts(roots, args.depth),
                               args.sort)
        if args.json:
            return json.dumps([t.to_dict() for t in tags], indent=2,
                              ensure_ascii=False)
        return format_tag_counts(tags)
    if args.command == "stat":
        stats = [compute_document_stats(root, label, len(data))
                 for label, data, root in documents]
        if args.json:
            payload = [s.to_dict() for s in stats]
            return json.dumps(payload[0] if len(payload) == 1 else payload,
                              indent=2, ensure_ascii=False)
        return "\n\n".join(format_document_stats(s) for s in stats)
    paths = discover_attribute_paths(roots)
    if args.json:
        return json.dumps(attribute_paths_to_list(paths), indent=2,
                          ensure_ascii=False)
    return format_attribute_paths(paths, show_all_values=args.values)


def write_result(text: str, output: str | None, verbose: bool = False):
    if not text.endswith("\n"):
        text += "\n"
    if output:
        Path(output).write_text(text, encoding="utf-8")
        if verbose:
            print(f"Output written to: {output}", file=sys.stderr)
    else:
        sys.stdout.write(text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("files", nargs="*",
                        help="XML files (reads stdin if none are given)")
    common.add_argument("--xml-dir", default=None,
                        help="Also read every *.xml file in this directory "
                             "(and one level of subdirectories)")
    common.add_argument("-o", "--output", default=None,
                        help="Write the result to a file instead of stdout")
    common.add_argument("--verbose", action="store_true",
                        help="Show progress on stderr")

    parser = argparse.ArgumentParser(
        prog="xml-structure",
        description="Show the merged structure of XML documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s tree catalog.xml
  %(prog)s tree catalog.xml --depth 2 --no-attrs
  %(prog)s outline --json catalog.xml
  %(prog)s xsd --xml-dir ./feeds -o feeds.xsd
  %(prog)s tags --depth 2 catalog.xml
  %(prog)s stat --json catalog.xml
  %(prog)s attrs --values catalog.xml
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    tree = subparsers.add_parser("tree", parents=[common],
                                 help="Structural skeleton")
    tree.add_argument("--depth", type=int, default=None,
                      help="Stop descending below this depth (root = 1)")
    tree.add_argument("--no-attrs", dest="attrs", action="store_false",
                      help="Hide attributes")
    tree.add_argument("--no-counts", dest="counts", action="store_false",
                      help="Hide repetition counts")

    outline = subparsers.add_parser("outline", parents=[common],
                                    help="Annotated outline")
    outline.add_argument("--json", action="store_true",
                         help="Output the outline as JSON")

    subparsers.add_parser("xsd", parents=[common], help="Inferred XSD schema")

    tags = subparsers.add_parser("tags", parents=[common],
                                 help="Element names with occurrence counts")
    tags.add_argument("--sort", choices=SORT_ORDERS, default=SORT_BY_COUNT,
                      help="Sort by count (default) or name")
    tags.add_argument("--depth", type=int, default=None,
                      help="Only count elements up to this depth (root = 1)")
    tags.add_argument("--json", action="store_true", help="Output as JSON")

    stat = subparsers.add_parser("stat", parents=[common],
                                 help="Quick overview of each document")
    stat.add_argument("--json", action="store_true", help="Output as JSON")

    attrs = subparsers.add_parser("attrs", parents=[common],
                                  help="Attributes by element path")
    attrs.add_argument("--values", action="store_true",
                       help="List every distinct value, however many")
    attrs.add_argument("--json", action="store_true", help="Output as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    sources: list[str | None] = list(args.files)
    if args.xml_dir:
        try:
            found = discover_xml_files(args.xml_dir)
        except NotADirectoryError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        if not found:
            print(f"WARNING: No XML files found in {args.xml_dir}",
                  file=sys.stderr)
        sources.extend(found)
        if not sources:
            print("ERROR: No XML files to read.", file=sys.stderr)
            return 1
    if not sources:
        sources = [None]

    if args.verbose:
        print(f"XML Structure Explorer: {args.command} "
              f"({len(sources)} document(s))", file=sys.stderr)

    documents = []
    for i, source in enumerate(sources):
        label = source or "(stdin)"
        try:
            data = read_source(source)
            root = parse_xml(data)
        except (etree.XMLSyntaxError, ValueError, OSError) as e:
            print(f"ERROR: {label}: {e}", file=sys.stderr)
            return 1
        documents.append((label, data, root))
        if args.verbose:
            print(f"  [{i+1}/{len(sources)}] {Path(label).name}: "
                  f"<{root.name}> ({count_nodes(root)} elements)",
                  file=sys.stderr)

    if args.command not in STRUCTURE_COMMANDS:
        write_result(render_instances(args, documents), args.output,
                     args.verbose)
        return 0

    corpus = build_corpus_structure(root for _, _, root in documents)
    if args.verbose:
        total = sum(count_elements(d) for d in corpus.values())
        print(f"  → {len(corpus)} root tag(s), {total} elements merged",
              file=sys.stderr)

    write_result(render(args, corpus), args.output, args.verbose)
    return 0


if __name__ == "__main__":
    sys.exit(main())
