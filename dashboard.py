#!/usr/bin/env python3
"""
XML Structure Explorer Dashboard
=================================
Upload XML documents (or paste one) and browse their merged structure:
  - Tree:    box-drawing skeleton with repetition counts
  - Outline: occurrence ranges, attribute annotations, inferred types
  - JSON:    the outline as JSON, downloadable
  - XSD:     the inferred schema, downloadable
  - Tags:    every element name with its total count

Run:
  streamlit run dashboard.py
"""

import json

import streamlit as st
from lxml import etree

from structure_builder import build_corpus_structure, count_elements
from structure_reader import parse_xml
from structure_renderers import (
    outline_document,
    render_outline,
    render_tree,
    render_xsd,
)
from structure_stats import collect_tag_counts, format_tag_counts, sort_tag_counts

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

PAGE_TITLE = "XML Structure Explorer"
DEFAULT_DEPTH = 0          # 0 = unlimited
MAX_DEPTH = 30

st.set_page_config(
    page_title=PAGE_TITLE,
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Data loading (cached)
# ---------------------------------------------------------------------------

@st.cache_data
def load_corpus(documents):
    """documents: tuple of (label, raw bytes). Parse errors propagate.

    Returns the merged corpus and the per-name element counts.
    """
    roots = [parse_xml(data) for _, data in documents]
    return build_corpus_structure(roots), collect_tag_counts(roots)


def collect_documents(uploads, pasted):
    documents = [(upload.name, upload.getvalue()) for upload in uploads or []]
    if pasted and pasted.strip():
        documents.append(("(pasted)", pasted.encode("utf-8")))
    return tuple(documents)


# ---------------------------------------------------------------------------
# Main app
# ---------------------------------------------------------------------------

def main():
    with st.sidebar:
        st.title(PAGE_TITLE)
        uploads = st.file_uploader("XML files", type=["xml"],
                                   accept_multiple_files=True)
        pasted = st.text_area("...or paste a document", height=150)

        st.divider()
        st.subheader("Tree options")
        depth = st.slider("Depth (0 = unlimited)", 0, MAX_DEPTH, DEFAULT_DEPTH)
        show_attributes = st.checkbox("Show attributes", value=True)
        show_counts = st.checkbox("Show counts", value=True)

    documents = collect_documents(uploads, pasted)
    if not documents:
        st.info("Upload one or more XML files to get started.")
        return

    try:
        corpus, tag_counts = load_corpus(documents)
    except (etree.XMLSyntaxError, ValueError) as e:
        st.error("Could not parse input: {}".format(e))
        return

    descriptors = list(corpus.values())

    with st.sidebar:
        st.divider()
        st.subheader("Quick Stats")
        st.write("{} document(s)".format(len(documents)))
        st.write("{} distinct element name(s)".format(len(tag_counts)))
        st.write("{:,} elements".format(
            sum(count_elements(d) for d in descriptors)))

    tab_tree, tab_outline, tab_json, tab_xsd, tab_tags = st.tabs(
        ["Tree", "Outline", "JSON", "XSD", "Tags"])

    with tab_tree:
        for descriptor in descriptors:
            st.code(render_tree(descriptor, depth=depth or None,
                                show_attributes=show_attributes,
                                show_counts=show_counts), language=None)

    with tab_outline:
        for descriptor in descriptors:
            st.code(render_outline(descriptor), language="yaml")

    with tab_json:
        outline_json = json.dumps(outline_document(descriptors), indent=2,
                                  ensure_ascii=False)
        st.code(outline_json, language="json")
        st.download_button("Download JSON", outline_json,
                           file_name="structure.json", mime="application/json")

    with tab_xsd:
        xsd = render_xsd(descriptors)
        st.code(xsd, language="xml")
        st.download_button("Download XSD", xsd, file_name="structure.xsd",
                           mime="application/xml")

    with tab_tags:
        st.code(format_tag_counts(sort_tag_counts(tag_counts)), language=None)


if __name__ == "__main__":
    main()
