# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
Capture context helpers.

Camera acquisition happens outside SnapHash; whatever produced the image hands
over its bytes plus a description of the environment. These helpers fill in
what can be derived from the image itself.
"""

import io
from datetime import datetime, timezone
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import SerializationError
from .serialization import ImageInput, strip_transport_framing
from .types import CaptureContext, Dimensions


def read_image_size(image: ImageInput) -> Tuple[int, int]:
    """
    Read (width, height) from encoded image bytes.

    Raises:
        SerializationError: If the bytes are not a decodable image
    """
    raw = strip_transport_framing(image)
    try:
        with Image.open(io.BytesIO(raw)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise SerializationError(f"cannot read image dimensions: {e}") from e


def build_capture_context(
    image: ImageInput,
    user_agent: str,
    platform: str,
    device_pixel_ratio: float = 1.0,
    screen_resolution: Tuple[int, int] = (0, 0),
    captured_at: Optional[datetime] = None,
    image_size: Optional[Tuple[int, int]] = None,
) -> CaptureContext:
    """
    Describe a capture for fingerprinting.

    Args:
        image: Captured image bytes
        user_agent: Capturing client identifier
        platform: Capturing platform name
        device_pixel_ratio: Display pixel ratio of the capturing device
        screen_resolution: (width, height) of the capturing screen
        captured_at: Capture time (default: now, UTC)
        image_size: (width, height); read from the image when omitted

    Returns:
        CaptureContext
    """
    if captured_at is None:
        captured_at = datetime.now(timezone.utc)
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=timezone.utc)

    if image_size is None:
        image_size = read_image_size(image)

    iso = captured_at.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    return CaptureContext(
        captured_at_iso=iso,
        user_agent=user_agent,
        platform=platform,
        device_pixel_ratio=device_pixel_ratio,
        screen_resolution=Dimensions(width=screen_resolution[0], height=screen_resolution[1]),
        image_size=Dimensions(width=image_size[0], height=image_size[1]),
    )
