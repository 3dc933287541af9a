# src/iatirollup/adapters/sources/__init__.py
"""
Source Adapters - Document Loading

This package loads raw IATI XML from files and HTTP(S) URLs.
"""

from iatirollup.adapters.sources.document_source import fetch_document, load_document, read_document

__all__ = [
    "fetch_document",
    "load_document",
    "read_document",
]
