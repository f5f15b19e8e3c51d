# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SnapHash - Cryptographic Utilities

SHA-256 hashing and digest format predicates shared by the serializer,
the fingerprint engine, the QR codec and the verification store.

Example Usage:
    >>> from snaphash.crypto import compute_sha256, is_short_digest_format
    >>>
    >>> digest = compute_sha256(b"canonical capture bytes")
    >>> is_short_digest_format(digest[:16])
    True
"""

from .hashing import (
    FULL_DIGEST_LENGTH,
    SHORT_DIGEST_LENGTH,
    compute_sha256,
    constant_time_compare,
    is_full_digest_format,
    is_hex,
    is_short_digest_format,
    normalize_digest,
    short_digest,
)

__all__ = [
    "FULL_DIGEST_LENGTH",
    "SHORT_DIGEST_LENGTH",
    "compute_sha256",
    "constant_time_compare",
    "is_full_digest_format",
    "is_hex",
    "is_short_digest_format",
    "normalize_digest",
    "short_digest",
]
