"""Tests for the xml-structure command line."""

from __future__ import annotations

import io
import json
import sys

import pytest

from structure_explorer import main
from structure_stats import format_size


@pytest.fixture
def feed_dir(tmp_path):
    """Two feed documents with a varying number of entries."""
    feeds = tmp_path / "feeds"
    feeds.mkdir()
    (feeds / "one.xml").write_text("<feed><entry id='1'/></feed>")
    (feeds / "two.xml").write_text(
        "<feed><entry id='2'/><entry id='3'/></feed>")
    return feeds


class TestCommands:
    """Tests for the tree / outline / xsd subcommands."""

    def test_tree(self, catalog_file, capsys):
        assert main(["tree", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("catalog\n")
        assert "product  (x3)" in out
        assert "@sku" in out

    def test_tree_options(self, catalog_file, capsys):
        assert main(["tree", str(catalog_file), "--depth", "2",
                     "--no-attrs", "--no-counts"]) == 0
        out = capsys.readouterr().out
        assert out == "catalog\n├── category\n└── product\n"

    def test_outline_text(self, catalog_file, capsys):
        assert main(["outline", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("catalog:\n  children: [category, product]\n")

    def test_outline_json(self, catalog_file, capsys):
        assert main(["outline", "--json", str(catalog_file)]) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["catalog"]["product"]["count"] == 3

    def test_xsd(self, catalog_file, capsys):
        assert main(["xsd", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("<?xml")
        assert 'name="catalog"' in out

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin",
                            io.TextIOWrapper(io.BytesIO(b"<r><a/><a/></r>")))
        assert main(["tree"]) == 0
        assert capsys.readouterr().out == "r\n└── a  (x2)\n"

    def test_output_file(self, catalog_file, tmp_path, capsys):
        target = tmp_path / "out.xsd"
        assert main(["xsd", str(catalog_file), "-o", str(target)]) == 0
        assert capsys.readouterr().out == ""
        assert 'name="catalog"' in target.read_text(encoding="utf-8")

    def test_subcommand_required(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 2


class TestMultipleDocuments:
    """Tests for merging several inputs."""

    def test_files_are_merged(self, feed_dir, capsys):
        assert main(["tree", str(feed_dir / "one.xml"),
                     str(feed_dir / "two.xml")]) == 0
        out = capsys.readouterr().out
        assert out == "feed\n└── entry  (x1..2)\n    └── @id\n"

    def test_xml_dir(self, feed_dir, capsys):
        assert main(["outline", "--json", "--xml-dir", str(feed_dir)]) == 0
        feed = json.loads(capsys.readouterr().out)["feed"]
        assert feed["count"] == 2
        assert feed["entry"]["occurs"] == "1..2"
        assert feed["entry"]["attrs"] == ["id(unique)"]

    def test_distinct_roots_rendered_separately(self, tmp_path, capsys):
        (tmp_path / "a.xml").write_text("<a/>")
        (tmp_path / "b.xml").write_text("<b/>")
        assert main(["tree", "--xml-dir", str(tmp_path)]) == 0
        assert capsys.readouterr().out == "a\n\nb\n"

    def test_verbose_progress_on_stderr(self, feed_dir, capsys):
        assert main(["tree", "--verbose", "--xml-dir", str(feed_dir)]) == 0
        captured = capsys.readouterr()
        assert "[1/2] one.xml: <feed> (2 elements)" in captured.err
        assert "[2/2] two.xml: <feed> (3 elements)" in captured.err
        assert "1 root tag(s), 5 elements merged" in captured.err
        assert captured.out.startswith("feed\n")


class TestInstanceCommands:
    """Tests for the tags / stat / attrs subcommands."""

    def test_tags(self, catalog_file, capsys):
        assert main(["tags", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("5  name\n3  price\n")
        assert out.endswith("1  catalog\n")

    def test_tags_options(self, catalog_file, capsys):
        assert main(["tags", "--sort", "name", "--depth", "2", "--json",
                     str(catalog_file)]) == 0
        assert json.loads(capsys.readouterr().out) == [
            {"name": "catalog", "count": 1},
            {"name": "category", "count": 2},
            {"name": "product", "count": 3},
        ]

    def test_tags_summed_across_files(self, feed_dir, capsys):
        assert main(["tags", "--xml-dir", str(feed_dir)]) == 0
        assert capsys.readouterr().out == "3  entry\n2  feed\n"

    def test_tags_rejects_unknown_sort(self, catalog_file):
        with pytest.raises(SystemExit) as excinfo:
            main(["tags", "--sort", "size", str(catalog_file)])
        assert excinfo.value.code == 2

    def test_stat(self, catalog_file, capsys):
        assert main(["stat", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        size = format_size(catalog_file.stat().st_size)
        assert out.startswith(f"File:       {catalog_file} ({size})\n")
        assert "Elements:   21\n" in out
        assert "Max depth:  4\n" in out

    def test_stat_json_per_document(self, feed_dir, capsys):
        assert main(["stat", "--json", "--xml-dir", str(feed_dir)]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert [s["elements"] for s in stats] == [2, 3]
        assert stats[0]["file"] == str(feed_dir / "one.xml")
        assert stats[0]["fileSize"] == len("<feed><entry id='1'/></feed>")

    def test_stat_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin",
                            io.TextIOWrapper(io.BytesIO(b"<r><a/></r>")))
        assert main(["stat", "--json"]) == 0
        stat = json.loads(capsys.readouterr().out)
        assert stat["file"] == "(stdin)"
        assert stat["fileSize"] == 11
        assert stat["topLevel"] == [{"name": "a", "count": 1}]

    def test_attrs(self, feed_dir, capsys):
        assert main(["attrs", "--xml-dir", str(feed_dir)]) == 0
        assert capsys.readouterr().out == \
            "feed/entry/@id  3 unique values  [1, 2, 3]\n"

    def test_attrs_json(self, catalog_file, capsys):
        assert main(["attrs", "--json", str(catalog_file)]) == 0
        attrs = json.loads(capsys.readouterr().out)
        assert attrs[0] == {"path": "catalog/category/@id", "uniqueCount": 2,
                            "values": ["cat-1", "cat-2"]}


class TestErrors:
    """Tests for error reporting and exit codes."""

    def test_malformed_document(self, tmp_path, capsys):
        bad = tmp_path / "bad.xml"
        bad.write_text("<root><open></root>")
        assert main(["tree", str(bad)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith(f"ERROR: {bad}:")

    def test_missing_file(self, tmp_path, capsys):
        assert main(["xsd", str(tmp_path / "missing.xml")]) == 1
        assert "ERROR:" in capsys.readouterr().err

    def test_empty_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"")))
        assert main(["tree"]) == 1
        assert capsys.readouterr().err == "ERROR: (stdin): Empty input\n"

    def test_missing_xml_dir(self, tmp_path, capsys):
        assert main(["tree", "--xml-dir", str(tmp_path / "nope")]) == 1
        assert "ERROR: XML directory not found" in capsys.readouterr().err

    def test_empty_xml_dir(self, tmp_path, capsys):
        assert main(["tree", "--xml-dir", str(tmp_path)]) == 1
        err = capsys.readouterr().err
        assert "WARNING: No XML files found" in err
        assert "ERROR: No XML files to read." in err
