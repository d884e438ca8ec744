"""Flask app wiring the catalog store, ingestor and API blueprint.

Run locally with ``python -m catalog.app``.
"""

from typing import Optional

from flask import Flask

from catalog.api import INGESTOR_KEY, api
from catalog.config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, MAX_UPLOAD_BYTES
from catalog.feeds import SupplierFeedClient
from catalog.ingest import CatalogIngestor
from catalog.logging_config import setup_logging
from catalog.store import CatalogStore

__all__ = ["create_app"]


def create_app(
    store: Optional[CatalogStore] = None,
    feed_client: Optional[SupplierFeedClient] = None,
) -> Flask:
    """Create the Flask app around one store.

    The store is owned by the ingestor registered on the app; nothing else
    holds a reference to it.
    """
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES

    ingestor = CatalogIngestor(store or CatalogStore(), feed_client=feed_client)
    app.extensions[INGESTOR_KEY] = ingestor
    app.register_blueprint(api)

    @app.route("/health", methods=["GET"])
    def health() -> dict:
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    setup_logging()
    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
