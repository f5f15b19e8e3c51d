# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Verification matcher.

Orchestrates capture and verification:

    capture   → fingerprint → record (matchCount=1) → store
    verify    → digest / QR payload / fresh capture → store lookup → outcome

Every successful verification increments the matched record's match counter,
so "verified N times" reflects real verifications.
"""

import logging
import secrets
import string
from typing import Callable, Optional

from .crypto.hashing import is_full_digest_format, is_short_digest_format, normalize_digest
from .errors import InvalidFormatError
from .fingerprint import FingerprintEngine, epoch_ms
from .preview import create_preview_ref
from .qr_payload import QRPayloadCodec
from .serialization import ContextInput, ImageInput
from .storage import create_backend
from .store import VerificationStore
from .types import QRPayload, VerificationOutcome, VerificationRecord

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_record_id(now_ms: int) -> str:
    """Opaque unique record id: ``shqr_<base36 time>_<9 random chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"shqr_{_base36(now_ms)}_{suffix}"


class VerificationMatcher:
    """
    Single entry point for front ends.

    Example:
        >>> matcher = VerificationMatcher(FingerprintEngine(), VerificationStore(MemoryBackend()))
        >>> record = await matcher.record_capture(jpeg_bytes, context)
        >>> matcher.verify_against_store(record.short_digest_hex).matched
        True
    """

    def __init__(
        self,
        engine: FingerprintEngine,
        store: VerificationStore,
        codec: Optional[QRPayloadCodec] = None,
        clock: Callable[[], int] = epoch_ms,
        preview_max_size: int = 150,
        preview_quality: int = 70,
    ):
        """
        Initialize matcher.

        Args:
            engine: Fingerprint engine
            store: Verification store owned by this session
            codec: QR payload codec (default: QRPayloadCodec())
            clock: Returns the current time in epoch milliseconds
            preview_max_size: Longest preview side in pixels
            preview_quality: Preview JPEG quality
        """
        self.engine = engine
        self.store = store
        self.codec = codec or QRPayloadCodec()
        self.clock = clock
        self.preview_max_size = preview_max_size
        self.preview_quality = preview_quality

    @classmethod
    def from_settings(cls, settings) -> "VerificationMatcher":
        """
        Wire engine, store and persistence backend from settings.

        Args:
            settings: snaphash.config.Settings

        Returns:
            Matcher owning a freshly loaded store
        """
        store = VerificationStore(create_backend(settings), key=settings.store_key)
        if store.last_warning:
            logger.warning(f"⚠ {store.last_warning}")

        return cls(
            FingerprintEngine(),
            store,
            preview_max_size=settings.preview_max_size,
            preview_quality=settings.preview_quality,
        )

    async def record_capture(self, image: ImageInput, context: ContextInput) -> VerificationRecord:
        """
        Fingerprint a capture and store its verification record.

        Args:
            image: Captured image bytes (or data URI)
            context: Capture context

        Returns:
            The stored record (matchCount=1)

        Raises:
            SerializationError: Invalid capture inputs (nothing stored)
            DigestUnavailableError: Hashing failed (nothing stored)
            PersistenceWriteError: The record could not be saved (not kept)
        """
        fingerprint = await self.engine.compute_fingerprint(image, context)

        record = VerificationRecord(
            id=new_record_id(fingerprint.computed_at_epoch_ms),
            digest_hex=fingerprint.digest_hex,
            short_digest_hex=fingerprint.short_digest_hex,
            algorithm=fingerprint.algorithm,
            recorded_at_epoch_ms=fingerprint.computed_at_epoch_ms,
            context=fingerprint.context,
            preview_ref=create_preview_ref(image, self.preview_max_size, self.preview_quality),
            match_count=1,
        )

        self.store.add(record)
        logger.info(f"📸 Capture recorded: {record.id} hash={record.short_digest_hex}...")
        return record

    def create_qr_payload(self, record: VerificationRecord) -> str:
        """Encode a stored record as QR payload text."""
        return self.codec.encode(record)

    def verify_against_store(self, value: str) -> VerificationOutcome:
        """
        Verify a typed or pasted digest.

        Args:
            value: Full (64 hex) or short (16 hex) digest, any case

        Returns:
            VerificationOutcome

        Raises:
            InvalidFormatError: If the input is neither digest format
        """
        query = normalize_digest(value) if isinstance(value, str) else ""
        if not (is_full_digest_format(query) or is_short_digest_format(query)):
            raise InvalidFormatError(f"rejected digest input of length {len(query)}")

        return self._lookup(query)

    def verify_against_qr_payload(self, payload_text: str) -> VerificationOutcome:
        """
        Verify scanned QR payload text.

        Args:
            payload_text: Text decoded from a QR symbol

        Returns:
            VerificationOutcome; ``reason="invalid_payload"`` when the text is
            not a valid verification code
        """
        result = self.codec.decode(payload_text)
        if not result.ok:
            return VerificationOutcome(
                matched=False,
                queried_at_epoch_ms=self.clock(),
                reason="invalid_payload",
            )

        return self._lookup(result.payload.short_digest_hex, payload=result.payload)

    async def verify_capture(self, image: ImageInput, context: ContextInput) -> VerificationOutcome:
        """
        Verify a fresh capture by recomputing its fingerprint.

        Args:
            image: Image bytes (or data URI)
            context: Capture context as recorded

        Returns:
            VerificationOutcome looked up by full digest
        """
        fingerprint = await self.engine.compute_fingerprint(image, context)
        return self._lookup(fingerprint.digest_hex)

    def _lookup(self, query: str, payload: Optional[QRPayload] = None) -> VerificationOutcome:
        queried_at = self.clock()
        record = self.store.match_by_digest(query)

        if record is None:
            logger.info(f"❌ No record for {query[:16]}...")
            return VerificationOutcome(
                matched=False,
                queried_at_epoch_ms=queried_at,
                query=query,
                reason="not_found",
                payload=payload,
            )

        logger.info(f"✅ Verified {record.id} ({record.match_count} time(s))")
        return VerificationOutcome(
            matched=True,
            queried_at_epoch_ms=queried_at,
            query=query,
            record=record,
            payload=payload,
        )
