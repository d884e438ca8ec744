"""Ingestion orchestration.

The ingestor is the only writer to a CatalogStore. Each ingestion takes a
monotonic token before doing any I/O and commits its products only if no
newer ingestion has started since, so a slow superseded load can never
overwrite a newer one. Failures leave the current collections untouched
and land in ``store.state.error``.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from catalog.errors import IngestionError, ParseError, UnexpectedIngestionError
from catalog.feeds import SupplierFeedClient, read_text_file
from catalog.logging_config import get_logger, log_ingest_event
from catalog.models import Product
from catalog.normalize import products_from_csv_text, products_from_json, products_from_json_text
from catalog.store import CatalogStore

__all__ = ["IngestResult", "CatalogIngestor", "decode_upload", "CSV_SUFFIXES", "JSON_SUFFIXES"]

logger = get_logger("ingest")

CSV_SUFFIXES = {".csv"}
JSON_SUFFIXES = {".json"}


@dataclass
class IngestResult:
    source: str
    token: int
    count: int
    applied: bool


def decode_upload(content: bytes) -> str:
    """Decode uploaded bytes as UTF-8 (a leading BOM is dropped)."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8 text: {e}") from e


class CatalogIngestor:
    """Sequence ingestions from files, uploads and supplier feeds into a store."""

    def __init__(
        self,
        store: CatalogStore,
        feed_client: Optional[SupplierFeedClient] = None,
    ) -> None:
        self.store = store
        self.feed_client = feed_client or SupplierFeedClient()
        self._lock = threading.Lock()
        self._latest_token = 0

    @property
    def latest_token(self) -> int:
        return self._latest_token

    # ------------------------------------------------------------------
    # Token protocol
    # ------------------------------------------------------------------

    def begin(self, source: str) -> int:
        """Start an ingestion and return its token."""
        with self._lock:
            self._latest_token += 1
            token = self._latest_token
            self.store.set_loading(True)
            self.store.set_error(None)
        log_ingest_event("ingest_started", {"source": source, "token": token})
        return token

    def commit(self, token: int, products: List[Product], source: str = "") -> bool:
        """Apply products if ``token`` is still the latest ingestion."""
        with self._lock:
            if token != self._latest_token:
                log_ingest_event(
                    "ingest_superseded",
                    {"source": source, "token": token, "latest_token": self._latest_token},
                )
                return False
            self.store.set_products(products)
        log_ingest_event(
            "ingest_committed",
            {
                "message": f"Loaded {len(products)} products from {source}",
                "source": source,
                "token": token,
                "count": len(products),
            },
        )
        return True

    def fail(self, token: int, error: Exception, source: str = "") -> bool:
        """Record a failure if ``token`` is still the latest ingestion."""
        with self._lock:
            if token != self._latest_token:
                logger.info(f"Ignoring failure of superseded ingestion {token}: {error}")
                return False
            self.store.set_error(str(error))
            self.store.set_loading(False)
        log_ingest_event(
            "ingest_failed",
            {
                "message": f"Ingestion from {source} failed: {error}",
                "source": source,
                "token": token,
                "error_type": type(error).__name__,
            },
            level=logging.ERROR,
        )
        return True

    def ingest(self, source: str, loader: Callable[[], List[Product]]) -> IngestResult:
        """Run ``loader`` under the token protocol.

        Raises:
            IngestionError: Re-raised after being recorded in the store; any
                other loader exception is wrapped in UnexpectedIngestionError
        """
        token = self.begin(source)
        try:
            products = loader()
        except IngestionError as e:
            self.fail(token, e, source)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error while ingesting {source}")
            error = UnexpectedIngestionError(f"Unexpected error: {e}")
            self.fail(token, error, source)
            raise error from e
        applied = self.commit(token, products, source)
        return IngestResult(source=source, token=token, count=len(products), applied=applied)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def load_csv_text(self, text: str, source: str = "csv") -> IngestResult:
        return self.ingest(source, lambda: products_from_csv_text(text))

    def load_json_text(self, text: str, source: str = "json") -> IngestResult:
        return self.ingest(source, lambda: products_from_json_text(text))

    def load_file(self, path: str) -> IngestResult:
        """Ingest a local .csv or .json file, chosen by extension."""
        suffix = Path(path).suffix.lower()
        if suffix in CSV_SUFFIXES:
            return self.ingest(path, lambda: products_from_csv_text(read_text_file(path)))
        return self.ingest(path, lambda: products_from_json_text(read_text_file(path)))

    def load_upload(self, filename: str, content: bytes) -> IngestResult:
        """Ingest uploaded file content; .csv is parsed as CSV, anything else as JSON."""
        suffix = Path(filename).suffix.lower()
        if suffix in CSV_SUFFIXES:
            return self.ingest(filename, lambda: products_from_csv_text(decode_upload(content)))
        return self.ingest(filename, lambda: products_from_json_text(decode_upload(content)))

    def load_supplier(self, supplier_id: str) -> IngestResult:
        """Ingest a supplier's published product document."""
        def loader() -> List[Product]:
            entry = self.feed_client.get_supplier(supplier_id)
            return products_from_json(self.feed_client.fetch_products(entry))

        return self.ingest(f"supplier:{supplier_id}", loader)
