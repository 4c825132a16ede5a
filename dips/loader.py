# =============================================================================
# DIP REGISTRY - DOCUMENT LOADER
# =============================================================================
#
# Feeds raw document text into the parser.
#
# - find_documents: DIP files from a local checkout, sorted by name
# - read_document: UTF-8 text of one file; undecodable bytes are a ParseError
# - iter_documents: (path, text) pairs for a whole checkout
# - fetch_document: a single DIP over HTTP (e.g. raw.githubusercontent.com)
#
# Network failures are logged and reported as None. The loader never
# parses; it only returns text.
#
# =============================================================================

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import requests

from dips.exceptions import ParseError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
USER_AGENT = "DipRegistry/1.0"

_DIP_REFERENCE_RE = re.compile(r"^(?:DIP)?\s*(\d+)$", re.IGNORECASE)


def find_documents(directory, pattern: str = "DIP*.md") -> List[Path]:
    """
    Matching files below directory, sorted by file name.

    Args:
        directory: Root directory, searched recursively
        pattern: Glob pattern for document files

    Raises:
        FileNotFoundError: directory does not exist
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Not a directory: {root}")
    paths = [path for path in root.rglob(pattern) if path.is_file()]
    return sorted(paths, key=lambda p: (p.name, str(p)))


def read_document(path) -> str:
    """
    Read one document as UTF-8.

    Raises:
        ParseError: file is not valid UTF-8
        OSError: file cannot be read
    """
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(
            f"Not valid UTF-8 (byte {e.start}): {e.reason}",
            source=str(path),
        )


def iter_documents(directory, pattern: str = "DIP*.md") -> Iterator[Tuple[Path, str]]:
    """
    Yield (path, text) for every matching file below directory.

    Raises:
        FileNotFoundError: directory does not exist
        ParseError: a file is not valid UTF-8
    """
    for path in find_documents(directory, pattern):
        yield path, read_document(path)


def dip_url(dip_id: int, base_url: str) -> str:
    """Build the URL of DIP<id>.md below base_url."""
    return f"{base_url.rstrip('/')}/DIP{int(dip_id)}.md"


def resolve_reference(reference: Union[int, str], base_url: str) -> str:
    """
    Turn a DIP number ("1030", "DIP1030") or a URL into a URL.

    Raises:
        ValueError: reference is neither
    """
    text = str(reference).strip()
    if text.startswith(("http://", "https://")):
        return text
    match = _DIP_REFERENCE_RE.match(text)
    if not match:
        raise ValueError(f"Not a DIP number or URL: {reference!r}")
    return dip_url(int(match.group(1)), base_url)


def fetch_document(url: str, timeout: int = DEFAULT_TIMEOUT) -> Optional[str]:
    """
    Download a document.

    Args:
        url: Document URL
        timeout: HTTP timeout in seconds

    Returns:
        Document text, or None if the request failed
    """
    try:
        resp = requests.get(
            url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
        resp.raise_for_status()
    except requests.exceptions.Timeout:
        logger.warning(f"Fetch {url}: timeout after {timeout}s")
        return None
    except requests.exceptions.RequestException as e:
        logger.warning(f"Fetch {url}: request failed: {e}")
        return None

    logger.info(f"Fetched {url} ({len(resp.text)} chars)")
    return resp.text
