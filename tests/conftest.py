# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""Pytest configuration and fixtures."""

import io

import pytest
from PIL import Image

from snaphash.fingerprint import FingerprintEngine
from snaphash.matcher import VerificationMatcher
from snaphash.storage import MemoryBackend
from snaphash.store import VerificationStore

FIXED_EPOCH_MS = 1704067200000  # 2024-01-01T00:00:00Z


def make_jpeg(width: int = 640, height: int = 480, color=(200, 40, 90)) -> bytes:
    """Encode a solid-colour JPEG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG", quality=50)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_jpeg()


@pytest.fixture
def context_data() -> dict:
    return {
        "capturedAtIso": "2024-01-01T00:00:00Z",
        "userAgent": "X",
        "platform": "Y",
        "devicePixelRatio": 2,
        "screenResolution": {"width": 1080, "height": 2400},
        "imageSize": {"width": 640, "height": 480},
    }


@pytest.fixture
def clock():
    return lambda: FIXED_EPOCH_MS


@pytest.fixture
def engine(clock) -> FingerprintEngine:
    return FingerprintEngine(clock=clock)


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend) -> VerificationStore:
    return VerificationStore(backend)


@pytest.fixture
def matcher(engine, store, clock) -> VerificationMatcher:
    return VerificationMatcher(engine, store, clock=clock)
