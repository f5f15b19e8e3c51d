# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SnapHash

Bind a captured image to a deterministic SHA-256 fingerprint, hand the
fingerprint around as a compact QR payload, and later prove that an
image/fingerprint pair was recorded by this installation.

Modules:
    serialization: Canonical bytes for (image, capture context)
    fingerprint: SHA-256 fingerprints and claimed-digest verification
    qr_payload: Versioned QR payload codec and QR symbol rendering
    store: Verification record store with pluggable persistence
    matcher: Capture and verification orchestration
"""

__version__ = "0.1.0"

from .errors import (
    DecodeError,
    DigestUnavailableError,
    InvalidFormatError,
    PersistenceReadError,
    PersistenceWriteError,
    SerializationError,
    SnapHashError,
)
from .types import (
    CaptureContext,
    Dimensions,
    FingerprintResult,
    QRPayload,
    VerificationOutcome,
    VerificationRecord,
)
from .serialization import CanonicalSerializer, serialize_capture
from .fingerprint import FingerprintEngine, FingerprintVerification
from .qr_payload import DecodeReason, DecodeResult, QRPayloadCodec, render_qr_png
from .storage import DocumentBackend, JsonFileBackend, MemoryBackend, SqlDocumentBackend, create_backend
from .store import DEFAULT_STORE_KEY, VerificationStore
from .matcher import VerificationMatcher
from .capture import build_capture_context

__all__ = [
    # Version
    "__version__",

    # Errors
    "SnapHashError",
    "SerializationError",
    "DigestUnavailableError",
    "InvalidFormatError",
    "DecodeError",
    "PersistenceReadError",
    "PersistenceWriteError",

    # Types
    "CaptureContext",
    "Dimensions",
    "FingerprintResult",
    "QRPayload",
    "VerificationOutcome",
    "VerificationRecord",

    # Core
    "CanonicalSerializer",
    "serialize_capture",
    "FingerprintEngine",
    "FingerprintVerification",
    "QRPayloadCodec",
    "DecodeReason",
    "DecodeResult",
    "render_qr_png",
    "VerificationStore",
    "DEFAULT_STORE_KEY",
    "VerificationMatcher",
    "build_capture_context",

    # Storage
    "DocumentBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "SqlDocumentBackend",
    "create_backend",
]
