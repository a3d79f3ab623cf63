from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable

from ..data_ingestion.config import DEFAULT_INGESTION_CONFIG
from ..data_ingestion.ingest import load_listings
from .models import Listing

logger = logging.getLogger(__name__)

_catalog: list[Listing] | None = None
_by_id: dict[int, Listing] = {}
_lock = threading.Lock()


def _default_path() -> Path:
    processed = DEFAULT_INGESTION_CONFIG.processed_path
    return processed if processed.exists() else DEFAULT_INGESTION_CONFIG.raw_csv_path


def set_catalog(listings: Iterable[Listing]) -> list[Listing]:
    """Replace the in-memory catalog (used at startup and by tests)."""
    global _catalog, _by_id
    catalog = list(listings)
    with _lock:
        _catalog = catalog
        _by_id = {listing.id: listing for listing in catalog}
    return catalog


def get_catalog() -> list[Listing]:
    """Return the in-memory listing catalog, loading it from CSV on first call."""
    if _catalog is None:
        path = _default_path()
        logger.info("Loading listing catalog from %s", path)
        set_catalog(load_listings(path))
    return _catalog or []


def find_listing(listing_id: int) -> Listing | None:
    get_catalog()
    return _by_id.get(listing_id)
