# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
JSON file backend.

Stores each logical document as ``<key>.json`` in a data directory. Writes go
to a temporary file in the same directory and are moved into place with
``os.replace`` so a failed write never leaves a half-written document.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from .base import DocumentBackend

logger = logging.getLogger(__name__)

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileBackend(DocumentBackend):
    """File-per-key document storage."""

    def __init__(self, data_dir: Path):
        """
        Initialize file backend.

        Args:
            data_dir: Directory holding the documents (created if missing)
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"File storage initialized: {self.data_dir}")

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY_RE.match(key) or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        filepath = self.path_for(key)

        if not filepath.exists():
            return None

        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()

    def write(self, key: str, document: str) -> None:
        filepath = self.path_for(key)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, filepath)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug(f"Wrote {len(document)} bytes → {filepath.name}")
