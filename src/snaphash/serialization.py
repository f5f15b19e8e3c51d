# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Canonical serialization of a capture.

Turns (image bytes, capture context) into one deterministic byte string:

    raw image bytes | canonical context JSON

The context JSON always uses sorted camelCase keys and compact separators, so
the caller's field order never reaches the hash. Transport framing such as a
``data:image/jpeg;base64,`` prefix is stripped (and the base64 decoded) so a
data URI and the raw bytes of the same image serialize identically.
"""

import base64
import binascii
import json
import logging
from typing import Mapping, Union

from pydantic import ValidationError

from .errors import SerializationError
from .types import CaptureContext

logger = logging.getLogger(__name__)

SEPARATOR = b"|"
DATA_URI_PREFIX = b"data:"

ImageInput = Union[bytes, bytearray, memoryview, str]
ContextInput = Union[CaptureContext, Mapping]


def strip_transport_framing(image: ImageInput) -> bytes:
    """
    Return the raw image bytes with any data-URI framing removed.

    Args:
        image: Raw bytes, or a data URI as bytes or text

    Returns:
        Raw image bytes

    Raises:
        SerializationError: If the data URI is malformed
    """
    if isinstance(image, str):
        if not image.startswith("data:"):
            raise SerializationError("image text must be a data URI")
        try:
            image = image.encode("ascii")
        except UnicodeEncodeError as e:
            raise SerializationError("data URI contains non-ASCII characters") from e
    data = bytes(image)

    if not data.startswith(DATA_URI_PREFIX):
        return data

    header, sep, body = data.partition(b",")
    if not sep:
        raise SerializationError("data URI has no payload separator")

    if header.endswith(b";base64"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SerializationError(f"data URI payload is not valid base64: {e}") from e

    return body


def coerce_context(context: ContextInput) -> CaptureContext:
    """Validate a mapping into a CaptureContext, or pass a model through."""
    if isinstance(context, CaptureContext):
        return context
    if context is None:
        raise SerializationError("capture context is missing")
    try:
        return CaptureContext.model_validate(context)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise SerializationError(f"capture context is invalid: {fields}") from e


def canonical_context_json(context: ContextInput) -> bytes:
    """
    Stable textual encoding of the hashed context fields.

    Args:
        context: CaptureContext or mapping with the wire keys

    Returns:
        UTF-8 JSON bytes with sorted keys and no whitespace
    """
    ctx = coerce_context(context)
    return json.dumps(
        ctx.to_wire(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")


def serialize_capture(image: ImageInput, context: ContextInput) -> bytes:
    """
    Serialize a capture into its canonical byte string.

    Args:
        image: Image bytes (or data URI)
        context: Capture context

    Returns:
        Deterministic bytes for hashing

    Raises:
        SerializationError: If the image is empty or the context incomplete
    """
    if image is None:
        raise SerializationError("image bytes are missing")

    raw = strip_transport_framing(image)
    if not raw:
        raise SerializationError("image bytes are empty")

    canonical = raw + SEPARATOR + canonical_context_json(context)
    logger.debug(f"Serialized capture: {len(raw)} image bytes, {len(canonical)} total")
    return canonical


class CanonicalSerializer:
    """Object form of :func:`serialize_capture` for injection into the engine."""

    separator = SEPARATOR

    def serialize(self, image: ImageInput, context: ContextInput) -> bytes:
        return serialize_capture(image, context)
