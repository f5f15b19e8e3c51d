# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""Document persistence capability used by the verification store."""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class DocumentBackend(ABC):
    """
    Reads and writes one text document per logical key.

    Implementations raise OSError (or a library-specific error) on I/O failure;
    the verification store decides how to recover.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the stored document, or None if nothing was written yet."""

    @abstractmethod
    def write(self, key: str, document: str) -> None:
        """Replace the stored document in a single all-or-nothing step."""

    def close(self) -> None:
        """Release any held resources."""


class MemoryBackend(DocumentBackend):
    """Process-local backend for tests and throwaway sessions."""

    def __init__(self, documents: Optional[Dict[str, str]] = None):
        self.documents: Dict[str, str] = dict(documents or {})

    def read(self, key: str) -> Optional[str]:
        return self.documents.get(key)

    def write(self, key: str, document: str) -> None:
        self.documents[key] = document
