# src/iatirollup/adapters/sources/document_source.py
"""
Document Sources - Loading IATI XML from Files and URLs

This module loads raw IATI XML documents as bytes, either from the local
filesystem or over HTTP(S). Parsing happens elsewhere; these functions only
move bytes.

Files that USE this module:
- iatirollup.app (loads every location given on the command line)
- tests.test_sources (unit tests)

Files that this module USES:
- iatirollup.shared.validators (is_url to tell URLs from paths)
- iatirollup.domain.errors (SourceUnavailableError)
"""
import logging
from pathlib import Path
from typing import Union

import requests

from iatirollup.domain.errors import SourceUnavailableError
from iatirollup.shared.validators import is_url

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60

_HEADERS = {
    "Accept": "application/xml, text/xml;q=0.9, */*;q=0.5",
    "User-Agent": "iati-rollup",
}


def read_document(path: Union[str, Path]) -> bytes:
    """
    Read an IATI XML document from disk.

    Args:
        path: Path to the XML file

    Returns:
        File content as bytes (the XML declaration decides the encoding)

    Raises:
        SourceUnavailableError: If the file cannot be read
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        log.error("Cannot read IATI document %s: %s", path, e)
        raise SourceUnavailableError(f"Cannot read {path}: {e}") from e
    log.info("Read %d bytes from %s", len(data), path)
    return data


def fetch_document(url: str, timeout: int = DEFAULT_TIMEOUT_SECONDS) -> bytes:
    """
    Download an IATI XML document.

    Args:
        url: http(s) URL of the document
        timeout: HTTP request timeout in seconds

    Returns:
        Response body as bytes

    Raises:
        SourceUnavailableError: On timeout, connection or HTTP errors
    """
    try:
        log.info("Fetching IATI document from %s", url)
        resp = requests.get(url, timeout=timeout, headers=_HEADERS)
        resp.raise_for_status()
    except requests.exceptions.Timeout as e:
        log.error("Download timeout after %d seconds for %s", timeout, url)
        raise SourceUnavailableError(f"Download timeout after {timeout}s for {url}") from e
    except requests.exceptions.RequestException as e:
        log.error("Download failed for %s: %s", url, e)
        raise SourceUnavailableError(f"Download failed for {url}: {e}") from e
    log.info("Fetched %d bytes from %s", len(resp.content), url)
    return resp.content


def load_document(location: str, timeout: int = DEFAULT_TIMEOUT_SECONDS) -> bytes:
    """Load a document from a URL or a file path, whichever ``location`` is."""
    if is_url(location):
        return fetch_document(location, timeout=timeout)
    return read_document(location)
