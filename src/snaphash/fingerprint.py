# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Fingerprint engine.

Computes the SHA-256 fingerprint of a canonical capture and verifies claimed
fingerprints against fresh inputs. Serialization runs synchronously; the digest
is the single awaited step and runs in a worker thread so large images do not
stall the event loop.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .crypto.hashing import (
    compute_sha256,
    constant_time_compare,
    is_full_digest_format,
    is_short_digest_format,
    normalize_digest,
    short_digest,
)
from .serialization import CanonicalSerializer, ContextInput, ImageInput, coerce_context
from .types import ALGORITHM, FingerprintResult

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


@dataclass
class FingerprintVerification:
    """Outcome of checking a claimed digest against recomputed inputs."""

    is_valid: bool
    recomputed_digest_hex: str
    claimed_digest_hex: str
    verified_at_epoch_ms: int


class FingerprintEngine:
    """
    Derives full and short fingerprints for captures.

    Example:
        >>> engine = FingerprintEngine()
        >>> result = await engine.compute_fingerprint(jpeg_bytes, context)
        >>> result.short_digest_hex == result.digest_hex[:16]
        True
    """

    algorithm = ALGORITHM

    def __init__(
        self,
        serializer: Optional[CanonicalSerializer] = None,
        clock: Callable[[], int] = epoch_ms,
    ):
        """
        Initialize fingerprint engine.

        Args:
            serializer: Canonical serializer (default: CanonicalSerializer())
            clock: Returns the current time in epoch milliseconds
        """
        self.serializer = serializer or CanonicalSerializer()
        self.clock = clock

    async def compute_fingerprint(self, image: ImageInput, context: ContextInput) -> FingerprintResult:
        """
        Fingerprint a capture.

        Args:
            image: Image bytes (or data URI)
            context: Capture context

        Returns:
            FingerprintResult whose digest depends only on (image, context)

        Raises:
            SerializationError: If the inputs are empty or incomplete
            DigestUnavailableError: If SHA-256 cannot be computed
        """
        ctx = coerce_context(context)
        canonical = self.serializer.serialize(image, ctx)

        digest_hex = await asyncio.to_thread(compute_sha256, canonical)

        logger.info(f"Fingerprint computed: {digest_hex[:16]}... ({len(canonical)} bytes)")

        return FingerprintResult(
            digest_hex=digest_hex,
            short_digest_hex=short_digest(digest_hex),
            algorithm=self.algorithm,
            computed_at_epoch_ms=self.clock(),
            context=ctx,
            canonical_byte_length=len(canonical),
        )

    async def verify_fingerprint(
        self,
        image: ImageInput,
        context: ContextInput,
        claimed_digest_hex: str,
    ) -> FingerprintVerification:
        """
        Recompute the fingerprint and compare it with a claimed digest.

        The claim is never trusted: the comparison is against a fresh digest,
        case-insensitive and in constant time.

        Args:
            image: Image bytes (or data URI)
            context: Capture context
            claimed_digest_hex: Digest presented by the caller

        Returns:
            FingerprintVerification with the recomputed digest
        """
        result = await self.compute_fingerprint(image, context)
        claimed = normalize_digest(claimed_digest_hex) if isinstance(claimed_digest_hex, str) else ""

        is_valid = is_full_digest_format(claimed) and constant_time_compare(result.digest_hex, claimed)

        if not is_valid:
            logger.info(f"Fingerprint mismatch: claimed {claimed[:16]}..., recomputed {result.short_digest_hex}...")

        return FingerprintVerification(
            is_valid=is_valid,
            recomputed_digest_hex=result.digest_hex,
            claimed_digest_hex=claimed,
            verified_at_epoch_ms=self.clock(),
        )

    @staticmethod
    def is_full_digest_format(value: str) -> bool:
        return is_full_digest_format(value)

    @staticmethod
    def is_short_digest_format(value: str) -> bool:
        return is_short_digest_format(value)
