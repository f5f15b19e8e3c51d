# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SnapHash - Core Data Types

Capture context, fingerprint results, verification records and QR payloads.
Field names are snake_case in Python; the JSON form (``model_dump(by_alias=True)``)
uses the camelCase keys of the persisted record document, and the QR payload
uses its compact ``v``/``h``/``t``/``a`` keys.

Example Usage:
    >>> from snaphash.types import CaptureContext
    >>>
    >>> context = CaptureContext.model_validate({
    ...     "capturedAtIso": "2024-01-01T00:00:00Z",
    ...     "userAgent": "X",
    ...     "platform": "Y",
    ...     "devicePixelRatio": 2,
    ...     "screenResolution": {"width": 1080, "height": 2400},
    ...     "imageSize": {"width": 640, "height": 480},
    ... })
    >>> context.device_pixel_ratio
    2.0
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .crypto.hashing import is_full_digest_format, is_short_digest_format, short_digest

ALGORITHM = "SHA-256"


class WireModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Dictionary form with wire (alias) keys."""
        return self.model_dump(by_alias=True)


class Dimensions(WireModel):
    """Width/height pair in pixels."""

    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class CaptureContext(WireModel):
    """
    Snapshot of the capture environment that feeds the fingerprint.

    Only these fields are hashed. Live device settings (video track settings,
    device ids) vary run-to-run and are dropped on validation.
    """

    captured_at_iso: str = Field(..., min_length=1)
    user_agent: str
    platform: str
    device_pixel_ratio: float = Field(..., gt=0)
    screen_resolution: Dimensions
    image_size: Dimensions

    @field_validator("captured_at_iso")
    @classmethod
    def validate_iso_timestamp(cls, v: str) -> str:
        # fromisoformat only accepts a trailing "Z" from Python 3.11 on
        candidate = v[:-1] + "+00:00" if v.endswith(("Z", "z")) else v
        try:
            datetime.fromisoformat(candidate)
        except ValueError:
            raise ValueError("capturedAtIso must be an ISO-8601 timestamp")
        return v


class FingerprintResult(WireModel):
    """Digest of one (image, context) pair."""

    digest_hex: str
    short_digest_hex: str
    algorithm: Literal["SHA-256"] = ALGORITHM
    computed_at_epoch_ms: int = Field(..., ge=0)
    context: CaptureContext
    canonical_byte_length: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_short_digest(self) -> "FingerprintResult":
        if not is_full_digest_format(self.digest_hex) or self.digest_hex != self.digest_hex.lower():
            raise ValueError("digestHex must be 64 lowercase hex characters")
        if self.short_digest_hex != short_digest(self.digest_hex):
            raise ValueError("shortDigestHex must be the first 16 characters of digestHex")
        return self


class VerificationRecord(WireModel):
    """
    Stored proof-of-capture entry.

    Persisted as one element of the record document::

        {"id": ..., "digestHex": ..., "shortDigestHex": ..., "algorithm": "SHA-256",
         "recordedAtEpochMs": ..., "context": {...}, "previewRef": ..., "matchCount": ...}
    """

    id: str = Field(..., min_length=1)
    digest_hex: str
    short_digest_hex: str
    algorithm: str = ALGORITHM
    recorded_at_epoch_ms: int = Field(..., ge=0)
    context: CaptureContext
    preview_ref: str = ""
    match_count: int = Field(1, ge=1)

    @field_validator("digest_hex")
    @classmethod
    def validate_digest(cls, v: str) -> str:
        if not is_full_digest_format(v):
            raise ValueError("digestHex must be 64 hexadecimal characters")
        return v.lower()

    @field_validator("short_digest_hex")
    @classmethod
    def validate_short_digest(cls, v: str) -> str:
        if not is_short_digest_format(v):
            raise ValueError("shortDigestHex must be 16 hexadecimal characters")
        return v.lower()

    @model_validator(mode="after")
    def check_short_digest(self) -> "VerificationRecord":
        if self.short_digest_hex != short_digest(self.digest_hex):
            raise ValueError("shortDigestHex must be the first 16 characters of digestHex")
        return self


class QRPayload(BaseModel):
    """Logical content of a verification QR code."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: str = Field(..., alias="v")
    short_digest_hex: str = Field(..., alias="h")
    recorded_at_epoch_ms: int = Field(..., alias="t")
    algorithm: str = Field(..., alias="a")


@dataclass
class VerificationOutcome:
    """Result of one verification query."""

    matched: bool
    queried_at_epoch_ms: int
    query: str = ""
    record: Optional[VerificationRecord] = None
    reason: Optional[str] = None  # "not_found" or "invalid_payload" when unmatched
    payload: Optional[QRPayload] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON responses."""
        return {
            "matched": self.matched,
            "queriedAt": self.queried_at_epoch_ms,
            "query": self.query,
            "record": self.record.to_wire() if self.record else None,
            "reason": self.reason,
            "payload": self.payload.model_dump(by_alias=True) if self.payload else None,
        }
