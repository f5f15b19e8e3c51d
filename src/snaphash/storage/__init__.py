# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SnapHash - Persistence Backends

The verification store persists its record collection through a
DocumentBackend: read/write one document by key. Which backend is used is a
configuration choice.

Backends:
    memory: Process-local dict (tests, throwaway sessions)
    file: One JSON file per key under the data directory
    sqlite: SQLAlchemy table, any database URL
"""

from pathlib import Path

from .base import DocumentBackend, MemoryBackend
from .file import JsonFileBackend
from .sql import SqlDocumentBackend


def create_backend(settings) -> DocumentBackend:
    """
    Build the backend named by ``settings.storage_backend``.

    Args:
        settings: snaphash.config.Settings

    Returns:
        Configured DocumentBackend
    """
    if settings.storage_backend == "memory":
        return MemoryBackend()
    if settings.storage_backend == "file":
        return JsonFileBackend(Path(settings.data_dir))
    if settings.storage_backend == "sqlite":
        if not settings.database_url:
            Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
        return SqlDocumentBackend(settings.resolved_database_url)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


__all__ = [
    "DocumentBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "SqlDocumentBackend",
    "create_backend",
]
