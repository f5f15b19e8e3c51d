# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
QR payload codec.

Encodes a fingerprint into the compact, versioned text carried by a
verification QR code and decodes scanned text back:

    {"v":"1.0","h":"<16-hex>","t":<epoch-ms>,"a":"SHA256"}

Decoding is total: it returns a DecodeResult and never raises. Rendering the
text into an actual QR symbol is delegated to the ``qrcode`` library.
"""

import io
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import qrcode

from .crypto.hashing import is_short_digest_format, short_digest
from .errors import DecodeError
from .types import FingerprintResult, QRPayload, VerificationRecord

logger = logging.getLogger(__name__)

PAYLOAD_VERSION = "1.0"
SUPPORTED_VERSIONS = frozenset({PAYLOAD_VERSION})
PAYLOAD_ALGORITHM = "SHA256"
# 9999-12-31T23:59:59.999Z
MAX_TIMESTAMP_MS = 253402300799999
REQUIRED_FIELDS = ("v", "h", "t", "a")


class DecodeReason(str, Enum):
    """Why a scanned payload was rejected."""

    MALFORMED_JSON = "MalformedJson"
    MISSING_FIELD = "MissingField"
    INVALID_DIGEST_FORMAT = "InvalidDigestFormat"
    UNSUPPORTED_VERSION = "UnsupportedVersion"
    INVALID_TIMESTAMP = "InvalidTimestamp"


@dataclass
class DecodeResult:
    """Tagged decode result: ``ok`` with a payload, or not ``ok`` with a reason."""

    ok: bool
    payload: Optional[QRPayload] = None
    reason: Optional[DecodeReason] = None
    detail: str = ""

    def unwrap(self) -> QRPayload:
        """Return the payload or raise DecodeError."""
        if not self.ok:
            raise DecodeError(self.reason, self.detail)
        return self.payload


def _failure(reason: DecodeReason, detail: str) -> DecodeResult:
    logger.info(f"QR payload rejected: {reason.value} ({detail})")
    return DecodeResult(ok=False, reason=reason, detail=detail)


class QRPayloadCodec:
    """Versioned codec for verification QR payloads."""

    version = PAYLOAD_VERSION
    algorithm = PAYLOAD_ALGORITHM

    def build(self, source: Union[FingerprintResult, VerificationRecord]) -> QRPayload:
        """Build the logical payload for a fingerprint or stored record."""
        if isinstance(source, VerificationRecord):
            recorded_at = source.recorded_at_epoch_ms
        else:
            recorded_at = source.computed_at_epoch_ms

        return QRPayload(
            version=self.version,
            short_digest_hex=short_digest(source.digest_hex),
            recorded_at_epoch_ms=recorded_at,
            algorithm=self.algorithm,
        )

    def encode(self, source: Union[FingerprintResult, VerificationRecord]) -> str:
        """
        Encode a fingerprint as compact payload text.

        Args:
            source: FingerprintResult (or a stored VerificationRecord)

        Returns:
            Compact JSON text, well under 100 bytes
        """
        payload = self.build(source)
        return json.dumps(
            {
                "v": payload.version,
                "h": payload.short_digest_hex,
                "t": payload.recorded_at_epoch_ms,
                "a": payload.algorithm,
            },
            separators=(",", ":"),
        )

    def decode(self, text: Union[str, bytes]) -> DecodeResult:
        """
        Decode scanned payload text.

        Args:
            text: Text read from a QR code

        Returns:
            DecodeResult; never raises
        """
        if isinstance(text, (bytes, bytearray)):
            try:
                text = bytes(text).decode("utf-8")
            except UnicodeDecodeError:
                return _failure(DecodeReason.MALFORMED_JSON, "payload is not UTF-8")

        if not isinstance(text, str):
            return _failure(DecodeReason.MALFORMED_JSON, "payload is not text")

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            return _failure(DecodeReason.MALFORMED_JSON, str(e))

        if not isinstance(data, dict):
            return _failure(DecodeReason.MALFORMED_JSON, "payload is not a JSON object")

        missing = [name for name in REQUIRED_FIELDS if data.get(name) in (None, "")]
        if missing:
            return _failure(DecodeReason.MISSING_FIELD, f"missing {', '.join(missing)}")

        version = data["v"]
        if not isinstance(version, str) or version not in SUPPORTED_VERSIONS:
            return _failure(DecodeReason.UNSUPPORTED_VERSION, f"version {version!r}")

        digest = data["h"]
        if not is_short_digest_format(digest):
            return _failure(DecodeReason.INVALID_DIGEST_FORMAT, "h is not 16 hex characters")

        timestamp = data["t"]
        if (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, int)
            or not 0 <= timestamp <= MAX_TIMESTAMP_MS
        ):
            return _failure(DecodeReason.INVALID_TIMESTAMP, "t is not a valid epoch-millisecond timestamp")

        algorithm = data["a"]
        if not isinstance(algorithm, str):
            return _failure(DecodeReason.MISSING_FIELD, "a is not a string")

        payload = QRPayload(
            version=version,
            short_digest_hex=digest.lower(),
            recorded_at_epoch_ms=timestamp,
            algorithm=algorithm,
        )
        return DecodeResult(ok=True, payload=payload)

    def is_valid(self, text: Union[str, bytes]) -> bool:
        return self.decode(text).ok


def render_qr_png(text: str, box_size: int = 8, border: int = 2) -> bytes:
    """
    Render payload text as a PNG QR symbol.

    Args:
        text: Encoded payload text
        box_size: Pixels per module
        border: Quiet-zone width in modules

    Returns:
        PNG image bytes
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    qr.make(fit=True)

    buffer = io.BytesIO()
    img = qr.make_image(fill_color="black", back_color="white")
    img.save(buffer, format="PNG")
    return buffer.getvalue()
