# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Verification record store.

Holds the verification records of one installation, newest first, and
persists them as a single JSON array through an injected DocumentBackend.

Lookup precedence for ``find_by_digest``:
    1. exact full digest
    2. exact short digest
    3. partial match: the record's full digest starts with the input, or the
       input starts with the record's short digest (inputs shorter than a
       short digest never match partially)

Each pass scans newest-first, so the most recent capture wins ties.
"""

import json
import logging
import threading
from typing import Callable, List, Optional

from pydantic import ValidationError

from .crypto.hashing import SHORT_DIGEST_LENGTH, is_hex, normalize_digest
from .errors import PersistenceReadError, PersistenceWriteError
from .storage.base import DocumentBackend
from .types import VerificationRecord

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "snaphashqr_records"


class VerificationStore:
    """
    Ordered collection of verification records.

    The store is the only owner of its records; callers receive immutable
    VerificationRecord instances. Mutations persist immediately. If a write
    fails the in-memory state is rolled back and PersistenceWriteError raised.
    """

    def __init__(self, backend: DocumentBackend, key: str = DEFAULT_STORE_KEY, autoload: bool = True):
        """
        Initialize verification store.

        Args:
            backend: Document persistence capability
            key: Logical key of the record document
            autoload: Load persisted records immediately
        """
        self.backend = backend
        self.key = key
        self._records: List[VerificationRecord] = []
        self._lock = threading.RLock()
        self.last_warning: Optional[str] = None

        if autoload:
            self.load_from_persistence()

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> List[VerificationRecord]:
        """All records, newest first."""
        with self._lock:
            return list(self._records)

    def get(self, record_id: str) -> Optional[VerificationRecord]:
        """Find a record by its id."""
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        return None

    def add(self, record: VerificationRecord) -> None:
        """
        Insert a record at the head and persist.

        Args:
            record: New verification record

        Raises:
            ValueError: If a record with the same id exists
            PersistenceWriteError: If the collection could not be saved
        """
        with self._lock:
            if any(existing.id == record.id for existing in self._records):
                raise ValueError(f"Duplicate record id: {record.id}")

            self._mutate(lambda records: [record] + records)

        logger.info(f"✓ Stored record {record.id} ({record.short_digest_hex})")

    def record_match(self, record_id: str) -> VerificationRecord:
        """
        Increment a record's match counter and persist.

        Args:
            record_id: Id of the matched record

        Returns:
            The updated record

        Raises:
            KeyError: If no record has this id
            PersistenceWriteError: If the collection could not be saved
        """
        with self._lock:
            current = self.get(record_id)
            if current is None:
                raise KeyError(record_id)

            updated = current.model_copy(update={"match_count": current.match_count + 1})
            self._mutate(lambda records: [updated if r.id == record_id else r for r in records])

        logger.info(f"Record {record_id} matched {updated.match_count} time(s)")
        return updated

    def find_by_digest(self, value: str) -> Optional[VerificationRecord]:
        """
        Look up a record by full, short or partial digest.

        Args:
            value: Digest text (any case, surrounding whitespace ignored)

        Returns:
            Matching record or None
        """
        if not isinstance(value, str):
            return None

        query = normalize_digest(value)
        if not query:
            return None

        with self._lock:
            records = list(self._records)

        for record in records:
            if record.digest_hex == query:
                return record

        for record in records:
            if record.short_digest_hex == query:
                return record

        if len(query) < SHORT_DIGEST_LENGTH or not is_hex(query):
            return None

        for record in records:
            if record.digest_hex.startswith(query) or query.startswith(record.short_digest_hex):
                return record

        return None

    def match_by_digest(self, value: str) -> Optional[VerificationRecord]:
        """
        Look up a record and count the match in one step.

        The store lock is held across lookup and increment, so a concurrent
        ``clear()`` cannot remove the record in between.

        Returns:
            The updated record, or None if nothing matched
        """
        with self._lock:
            record = self.find_by_digest(value)
            if record is None:
                return None
            return self.record_match(record.id)

    def clear(self) -> None:
        """
        Remove every record and persist the empty collection.

        Irreversible; front ends must confirm with the user first.
        """
        with self._lock:
            count = len(self._records)
            self._mutate(lambda records: [])

        logger.warning(f"Cleared {count} verification record(s)")

    def load_from_persistence(self) -> Optional[str]:
        """
        Replace the in-memory records with the persisted collection.

        Corrupt or unreadable data resets the store to empty instead of
        propagating; the returned warning (also kept in ``last_warning``)
        lets the caller show a soft notice.

        Returns:
            None on success, otherwise a warning message
        """
        with self._lock:
            try:
                self._records = self._read_records()
                self.last_warning = None
                logger.info(f"Loaded {len(self._records)} stored record(s)")
            except PersistenceReadError as e:
                self._records = []
                self.last_warning = e.user_message
                logger.warning(f"⚠ Resetting verification records: {e}")

            return self.last_warning

    def persist(self) -> None:
        """
        Write the full record collection.

        Raises:
            PersistenceWriteError: If the backend write failed
        """
        with self._lock:
            self._write_records(self._records)

    def _read_records(self) -> List[VerificationRecord]:
        try:
            document = self.backend.read(self.key)
        except (OSError, ValueError) as e:
            raise PersistenceReadError(f"backend read failed: {e}") from e

        if document is None or not document.strip():
            return []

        try:
            data = json.loads(document)
        except (ValueError, RecursionError) as e:
            raise PersistenceReadError(f"stored records are not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise PersistenceReadError("stored records are not a JSON array")

        try:
            records = [VerificationRecord.model_validate(item) for item in data]
        except ValidationError as e:
            raise PersistenceReadError(f"stored record is invalid: {e.error_count()} error(s)") from e

        ids = [record.id for record in records]
        if len(set(ids)) != len(ids):
            raise PersistenceReadError("stored records contain duplicate ids")

        return records

    def _write_records(self, records: List[VerificationRecord]) -> None:
        document = json.dumps([record.to_wire() for record in records], separators=(",", ":"))
        try:
            self.backend.write(self.key, document)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to persist verification records: {e}")
            raise PersistenceWriteError(f"backend write failed: {e}") from e

    def _mutate(self, change: Callable[[List[VerificationRecord]], List[VerificationRecord]]) -> None:
        """Apply a change, persist it, and roll back if the write fails."""
        previous = self._records
        updated = change(list(previous))
        self._records = updated
        try:
            self._write_records(updated)
        except PersistenceWriteError:
            self._records = previous
            raise
