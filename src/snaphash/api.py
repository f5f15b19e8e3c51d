# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SnapHash - Web API

Thin HTTP front end over the verification matcher: capture an image, verify a
typed digest or a scanned QR payload, list and clear records.
"""

import json
import logging
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from . import __version__
from .config import Settings, get_settings
from .errors import (
    DigestUnavailableError,
    PersistenceWriteError,
    SnapHashError,
)
from .matcher import VerificationMatcher
from .qr_payload import render_qr_png

logger = logging.getLogger(__name__)


class QRVerificationRequest(BaseModel):
    """Scanned QR payload text."""
    payload: str


def _http_error(e: SnapHashError) -> HTTPException:
    logger.error(f"   ❌ {type(e).__name__}: {e}")
    status = 500 if isinstance(e, (DigestUnavailableError, PersistenceWriteError)) else 400
    return HTTPException(status_code=status, detail=e.user_message)


def create_app(settings: Optional[Settings] = None, matcher: Optional[VerificationMatcher] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings (default: environment)
        matcher: Preconfigured matcher (default: built from settings)

    Returns:
        FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="SnapHash Verifier",
        description="Capture fingerprints and verify images against stored records",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.matcher = matcher or VerificationMatcher.from_settings(settings)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        store = request.app.state.matcher.store
        return {
            "status": "degraded" if store.last_warning else "healthy",
            "records": len(store),
            "warning": store.last_warning,
            "version": __version__,
        }

    @app.post("/api/capture")
    async def capture(request: Request, file: UploadFile = File(...), context: str = Form(...)):
        """
        Record a capture.

        Steps:
        1. Read the uploaded image and its capture context
        2. Fingerprint and store a verification record
        3. Return the record and its QR payload text
        """
        matcher: VerificationMatcher = request.app.state.matcher
        logger.info(f"📤 Received capture: {file.filename}")

        image_bytes = await file.read()

        try:
            context_data = json.loads(context)
        except (ValueError, RecursionError):
            raise HTTPException(status_code=400, detail="invalid capture data")

        try:
            record = await matcher.record_capture(image_bytes, context_data)
        except SnapHashError as e:
            raise _http_error(e)

        return {
            "record": record.to_wire(),
            "qrPayload": matcher.create_qr_payload(record),
        }

    @app.get("/api/verify-hash/{digest}")
    async def verify_hash(request: Request, digest: str):
        """Verify a full or short digest typed by the user."""
        matcher: VerificationMatcher = request.app.state.matcher
        logger.info(f"🔍 Hash verification request: {digest[:16]}...")

        try:
            outcome = matcher.verify_against_store(digest)
        except SnapHashError as e:
            raise _http_error(e)

        result = outcome.to_dict()
        result["message"] = "hash verified" if outcome.matched else "hash not found"
        return result

    @app.post("/api/verify-qr")
    async def verify_qr(request: Request, body: QRVerificationRequest):
        """Verify a scanned QR payload."""
        matcher: VerificationMatcher = request.app.state.matcher

        try:
            outcome = matcher.verify_against_qr_payload(body.payload)
        except SnapHashError as e:
            raise _http_error(e)

        result = outcome.to_dict()
        if outcome.reason == "invalid_payload":
            result["message"] = "not a valid verification code"
        else:
            result["message"] = "hash verified" if outcome.matched else "hash not found"
        return result

    @app.get("/api/records")
    async def list_records(request: Request):
        """List stored records, newest first."""
        store = request.app.state.matcher.store
        return {"records": [record.to_wire() for record in store.records()]}

    @app.get("/api/records/{record_id}/qr.png")
    async def record_qr(request: Request, record_id: str):
        """Render the QR code for a stored record."""
        matcher: VerificationMatcher = request.app.state.matcher
        record = matcher.store.get(record_id)
        if record is None:
            raise HTTPException(status_code=404, detail="record not found")

        png = render_qr_png(
            matcher.create_qr_payload(record),
            box_size=request.app.state.settings.qr_box_size,
            border=request.app.state.settings.qr_border,
        )
        return Response(content=png, media_type="image/png")

    @app.delete("/api/records")
    async def clear_records(request: Request, confirm: bool = Query(False)):
        """Delete every record. Requires ``?confirm=true``."""
        if not confirm:
            raise HTTPException(status_code=400, detail="confirmation required to clear records")

        try:
            request.app.state.matcher.store.clear()
        except SnapHashError as e:
            raise _http_error(e)

        return {"cleared": True}

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(create_app(_settings), host=_settings.host, port=_settings.port)
