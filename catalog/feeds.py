"""Supplier feed client.

Supplier data is published as a directory of JSON files: an index
(``suppliers.json``) listing each supplier's ``products_file`` and
``config_file``. The directory can be served over HTTP or read from disk.
"""

import json
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import urljoin

import requests  # type: ignore[import-untyped]

from catalog.config import HEADERS, REQUEST_TIMEOUT, SUPPLIER_DATA_SOURCE, SUPPLIER_INDEX_FILE
from catalog.errors import FormatError, ParseError, SupplierNotFoundError, TransportError
from catalog.logging_config import get_logger
from catalog.models import SupplierEntry, SupplierTheme

__all__ = [
    "SupplierFeedClient",
    "create_session",
    "is_remote",
    "read_text_file",
]

logger = get_logger("feeds")


def create_session() -> requests.Session:
    """Create a requests Session with JSON headers for feed fetches."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_text_file(path: str) -> str:
    """Read a local file as UTF-8 text (a leading BOM is dropped).

    Raises:
        TransportError: If the file cannot be read
    """
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise TransportError(f"Failed to read {path}: {e}") from e


class SupplierFeedClient:
    """Fetch supplier index, product documents and theme configs.

    Args:
        source: Base URL (http/https) or local directory; defaults to
            CATALOG_SUPPLIER_DATA
        session: Optional requests.Session for connection reuse
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        source: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.source = str(source or SUPPLIER_DATA_SOURCE)
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = create_session()
        return self._session

    def resolve(self, relative: str) -> str:
        """Resolve a feed file name against the base source."""
        if is_remote(relative):
            return relative
        if is_remote(self.source):
            base = self.source if self.source.endswith("/") else self.source + "/"
            return urljoin(base, relative.lstrip("/"))
        return str(Path(self.source) / relative.lstrip("/"))

    def fetch_text(self, relative: str) -> str:
        """Fetch a feed file as text.

        Raises:
            TransportError: On network errors, HTTP error status or unreadable files
        """
        location = self.resolve(relative)
        if not is_remote(location):
            return read_text_file(location)

        logger.debug(f"GET {location}")
        try:
            resp = self.session.get(location, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            raise TransportError(f"HTTP error! Status: {status} ({location})") from e
        except requests.RequestException as e:
            raise TransportError(f"Failed to fetch {location}: {e}") from e
        return resp.text

    def fetch_json(self, relative: str) -> Any:
        """Fetch and parse a JSON feed file.

        Raises:
            TransportError: If the file cannot be fetched
            ParseError: If the content is not valid JSON
        """
        text = self.fetch_text(relative)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON in {relative}: {e}") from e

    def list_suppliers(self) -> List[SupplierEntry]:
        """Load the supplier index."""
        data = self.fetch_json(SUPPLIER_INDEX_FILE)
        if not isinstance(data, list):
            raise FormatError(f"Unrecognized format: {SUPPLIER_INDEX_FILE} must be an array")
        return [SupplierEntry.from_dict(entry) for entry in data if isinstance(entry, dict)]

    def get_supplier(self, supplier_id: str) -> SupplierEntry:
        """Look up one supplier in the index.

        Raises:
            SupplierNotFoundError: If the id is not listed
        """
        for entry in self.list_suppliers():
            if entry.id == supplier_id:
                return entry
        raise SupplierNotFoundError(f"Supplier '{supplier_id}' not found")

    def fetch_products(self, entry: SupplierEntry) -> Any:
        """Fetch the raw product document for a supplier."""
        return self.fetch_json(entry.products_file)

    def fetch_theme(self, entry: SupplierEntry) -> SupplierTheme:
        """Fetch a supplier's theme config, falling back to default values."""
        data = self.fetch_json(entry.config_file)
        if not isinstance(data, dict):
            raise FormatError(f"Unrecognized format: {entry.config_file} must be an object")
        return SupplierTheme.from_dict(data)
