# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Error taxonomy for SnapHash.

Every error carries a short, classified ``user_message`` that front ends show
as-is. Internal detail stays in the exception text and in the logs.
"""

from typing import Optional


class SnapHashError(Exception):
    """Base class for all SnapHash failures."""

    user_message = "verification failed"

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class SerializationError(SnapHashError, ValueError):
    """Capture inputs are empty or incomplete; raised before any hashing."""

    user_message = "invalid capture data"


class DigestUnavailableError(SnapHashError, RuntimeError):
    """The SHA-256 primitive failed or is not available in this runtime."""

    user_message = "hashing unavailable"


class InvalidFormatError(SnapHashError, ValueError):
    """A user-supplied digest is neither a full nor a short digest."""

    user_message = "invalid hash format"


class DecodeError(SnapHashError, ValueError):
    """A scanned QR payload is not a valid verification code."""

    user_message = "not a valid verification code"

    def __init__(self, reason, detail: str = ""):
        super().__init__(detail or str(reason))
        self.reason = reason


class PersistenceReadError(SnapHashError):
    """The stored record collection is corrupt or unreadable."""

    user_message = "stored records could not be read and were reset"


class PersistenceWriteError(SnapHashError):
    """The record collection could not be written."""

    user_message = "records could not be saved"
