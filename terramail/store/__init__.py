from __future__ import annotations

import logging

from terramail.config import Settings
from terramail.db import init_db
from terramail.store.base import COLLECTIONS, Snapshot, Store
from terramail.store.json_file import JsonFileStore
from terramail.store.sql import SqlStore

logger = logging.getLogger(__name__)


def build_store(cfg: Settings) -> Store:
    """Return the store selected by ``STORE_BACKEND``."""
    if cfg.store_backend == "json":
        logger.info("Using JSON file store at %s", cfg.json_store_path)
        return JsonFileStore(cfg.json_store_path)

    init_db(cfg)
    logger.info("Using SQL store (%s)", cfg.database_url.split("://", 1)[0])
    return SqlStore()


__all__ = [
    "COLLECTIONS",
    "Snapshot",
    "Store",
    "JsonFileStore",
    "SqlStore",
    "build_store",
]
