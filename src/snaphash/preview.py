# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Preview thumbnails for verification records.

A record keeps a small JPEG data URI of its capture so front ends can show
what was fingerprinted without storing the full image.
"""

import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

from .serialization import ImageInput, strip_transport_framing

logger = logging.getLogger(__name__)


def create_preview_ref(image: ImageInput, max_size: int = 150, quality: int = 70) -> str:
    """
    Build a thumbnail data URI for an image.

    The aspect ratio is kept and the longest side is at most ``max_size``.

    Args:
        image: Image bytes (or data URI)
        max_size: Longest side of the preview in pixels
        quality: JPEG quality

    Returns:
        ``data:image/jpeg;base64,...`` or "" if the bytes are not a
        decodable image
    """
    try:
        raw = strip_transport_framing(image)
        with Image.open(io.BytesIO(raw)) as img:
            thumb = img.convert("RGB")
            thumb.thumbnail((max_size, max_size))

            buffer = io.BytesIO()
            thumb.save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning(f"⚠ Could not create preview: {e}")
        return ""

    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"
