"""
Pytest configuration and fixtures for the structure explorer tests.
"""

import pytest

from structure_reader import parse_xml


CATALOG_XML = """<catalog>
  <category id="cat-1">
    <name>Electronics</name>
    <description>Electronic gadgets</description>
  </category>
  <category id="cat-2">
    <name>Books</name>
    <description>Reading material</description>
  </category>
  <product sku="A-001" category-ref="cat-1">
    <name>Widget Pro</name>
    <price currency="USD">149.99</price>
    <tags><tag>premium</tag><tag>new</tag></tags>
  </product>
  <product sku="A-002" category-ref="cat-1">
    <name>Widget Basic</name>
    <price currency="EUR">49.99</price>
    <tags><tag>budget</tag></tags>
  </product>
  <product sku="A-003" category-ref="cat-2">
    <name>Novel</name>
    <price currency="USD">12.99</price>
  </product>
</catalog>"""


@pytest.fixture
def catalog_xml() -> str:
    """A small product catalog with repeats, optional children and enums."""
    return CATALOG_XML


@pytest.fixture
def catalog_root(catalog_xml):
    """The catalog parsed into an XmlNode tree."""
    return parse_xml(catalog_xml)


@pytest.fixture
def catalog_file(tmp_path, catalog_xml):
    """The catalog written to disk."""
    path = tmp_path / "catalog.xml"
    path.write_text(catalog_xml, encoding="utf-8")
    return path
