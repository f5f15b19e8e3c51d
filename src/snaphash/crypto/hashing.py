# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Standardized hashing utilities for SnapHash.

All SHA-256 hashing and digest format checks in SnapHash go through these
functions so capture, verification and the QR codec agree on one format.
"""

import hashlib
import hmac
import re

from ..errors import DigestUnavailableError

FULL_DIGEST_LENGTH = 64
SHORT_DIGEST_LENGTH = 16

_FULL_DIGEST_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_SHORT_DIGEST_RE = re.compile(r"^[0-9a-fA-F]{16}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def compute_sha256(data: bytes) -> str:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Canonical capture bytes

    Returns:
        64-character hex string (lowercase)

    Raises:
        DigestUnavailableError: If the runtime cannot produce a SHA-256 digest

    Example:
        >>> len(compute_sha256(b"canonical capture"))
        64
    """
    if "sha256" not in hashlib.algorithms_available:
        raise DigestUnavailableError("sha256 is not provided by hashlib")

    try:
        return hashlib.sha256(data).hexdigest()
    except (ValueError, TypeError, OSError) as e:
        raise DigestUnavailableError(f"SHA-256 computation failed: {e}") from e


def is_full_digest_format(value: str) -> bool:
    """
    Check that a string is a full SHA-256 digest.

    Args:
        value: String to validate

    Returns:
        True if exactly 64 hex characters (either case), False otherwise

    Example:
        >>> is_full_digest_format("A1" * 32)
        True
        >>> is_full_digest_format("not a hash")
        False
    """
    if not isinstance(value, str):
        return False
    return _FULL_DIGEST_RE.fullmatch(value) is not None


def is_short_digest_format(value: str) -> bool:
    """
    Check that a string is a short digest (first 16 hex chars of a full one).

    Args:
        value: String to validate

    Returns:
        True if exactly 16 hex characters (either case), False otherwise
    """
    if not isinstance(value, str):
        return False
    return _SHORT_DIGEST_RE.fullmatch(value) is not None


def is_hex(value: str) -> bool:
    """True if value is a non-empty string of hex characters."""
    return isinstance(value, str) and _HEX_RE.fullmatch(value) is not None


def normalize_digest(value: str) -> str:
    """Trim whitespace and lowercase a user-supplied digest."""
    return value.strip().lower()


def short_digest(digest_hex: str) -> str:
    """Derive the short digest by truncation."""
    return digest_hex[:SHORT_DIGEST_LENGTH]


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two digest strings without leaking timing information.

    Args:
        a: First digest
        b: Second digest

    Returns:
        True if equal
    """
    return hmac.compare_digest(a.encode("ascii", "ignore"), b.encode("ascii", "ignore"))
