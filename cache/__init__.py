"""Persistent store factory and exports."""

import logging
from typing import Any, Dict

from cache.base import CoordinateCache, DurationCache, Store
from cache.memory import MemoryStore
from cache.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


def get_store(config: Dict[str, Any]) -> Store:
    """
    Factory function to get the configured store.

    Args:
        config: Configuration dictionary from config.json

    Returns:
        Store instance (SQLiteStore or MemoryStore)

    Raises:
        ValueError: If the backend is not supported
    """
    db_config = config.get("database", {})
    backend = db_config.get("backend", "sqlite").lower()

    if backend == "sqlite":
        path = db_config.get("path", "data.db")
        logger.info(f"Using SQLite store at {path}")
        return SQLiteStore(path)

    elif backend == "memory":
        logger.info("Using in-memory store (nothing is persisted)")
        return MemoryStore()

    else:
        raise ValueError(
            f"Unsupported database backend: {backend}. "
            f"Supported backends: 'sqlite', 'memory'"
        )


__all__ = [
    "get_store",
    "CoordinateCache",
    "DurationCache",
    "Store",
    "MemoryStore",
    "SQLiteStore",
]
