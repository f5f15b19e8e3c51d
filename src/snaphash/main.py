# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SnapHash command line.

Usage:
    python -m snaphash capture photo.jpg --user-agent cam/1.0 --platform linux
    python -m snaphash verify a1b2c3d4e5f60718
    python -m snaphash verify-qr '{"v":"1.0","h":"a1b2c3d4e5f60718","t":1704067200000,"a":"SHA256"}'
    python -m snaphash records
    python -m snaphash qr shqr_lqz3k1c0_x8f2k1m9a --output code.png
    python -m snaphash clear --yes
    python -m snaphash serve
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .capture import build_capture_context
from .config import Settings, configure_logging, get_settings
from .errors import SnapHashError
from .matcher import VerificationMatcher
from .qr_payload import render_qr_png
from .types import VerificationOutcome

logger = logging.getLogger(__name__)


def _resolution(value: str) -> Tuple[int, int]:
    try:
        width, height = value.lower().split("x", 1)
        return int(width), int(height)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snaphash",
        description="Fingerprint captures and verify them later",
    )
    subparsers = parser.add_subparsers(dest="command")

    capture = subparsers.add_parser("capture", help="Fingerprint an image and store a record")
    capture.add_argument("image", type=Path, help="Image file to fingerprint")
    capture.add_argument("--user-agent", default="snaphash-cli", help="Capturing client identifier")
    capture.add_argument("--platform", default=sys.platform, help="Capturing platform")
    capture.add_argument("--pixel-ratio", type=float, default=1.0, help="Device pixel ratio")
    capture.add_argument("--screen", type=_resolution, default=(0, 0), help="Screen resolution WIDTHxHEIGHT")
    capture.add_argument("--qr-output", type=Path, help="Also write the record's QR code PNG here")

    verify = subparsers.add_parser("verify", help="Verify a full or short digest")
    verify.add_argument("digest", help="64 or 16 hex characters")

    verify_qr = subparsers.add_parser("verify-qr", help="Verify scanned QR payload text")
    verify_qr.add_argument("payload", help="Payload text read from the QR code")

    subparsers.add_parser("records", help="List stored records, newest first")

    qr = subparsers.add_parser("qr", help="Write the QR code of a stored record")
    qr.add_argument("record_id", help="Record id")
    qr.add_argument("--output", type=Path, required=True, help="PNG file to write")

    clear = subparsers.add_parser("clear", help="Delete all records (irreversible)")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    subparsers.add_parser("serve", help="Run the HTTP API")

    return parser


def _print_outcome(outcome: VerificationOutcome) -> None:
    if outcome.reason == "invalid_payload":
        print("❌ Not a valid verification code")
        return

    if not outcome.matched:
        print(f"❌ Hash not found: {outcome.query}")
        return

    record = outcome.record
    recorded = datetime.fromtimestamp(record.recorded_at_epoch_ms / 1000).isoformat(timespec="seconds")
    print("✅ Hash verified")
    print(f"  Record: {record.id}")
    print(f"  Hash: {record.digest_hex}")
    print(f"  Recorded: {recorded}")
    print(f"  Verified {record.match_count} time(s)")


def serve(settings: Settings) -> None:
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


def run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "serve":
        serve(settings)
        return 0

    matcher = VerificationMatcher.from_settings(settings)
    store = matcher.store
    if store.last_warning:
        print(f"⚠ {store.last_warning}", file=sys.stderr)

    if args.command == "capture":
        image_bytes = args.image.read_bytes()
        context = build_capture_context(
            image_bytes,
            user_agent=args.user_agent,
            platform=args.platform,
            device_pixel_ratio=args.pixel_ratio,
            screen_resolution=args.screen,
        )
        record = asyncio.run(matcher.record_capture(image_bytes, context))
        payload = matcher.create_qr_payload(record)

        print("✓ Capture recorded")
        print(f"  Record: {record.id}")
        print(f"  Hash: {record.digest_hex}")
        print(f"  Short hash: {record.short_digest_hex}")
        print(f"  QR payload: {payload}")

        if args.qr_output:
            args.qr_output.write_bytes(render_qr_png(payload, settings.qr_box_size, settings.qr_border))
            print(f"  QR code: {args.qr_output}")

    elif args.command == "verify":
        _print_outcome(matcher.verify_against_store(args.digest))

    elif args.command == "verify-qr":
        _print_outcome(matcher.verify_against_qr_payload(args.payload))

    elif args.command == "records":
        records = store.records()
        if not records:
            print("No verification records yet")
        for record in records:
            print(f"{record.id}  {record.short_digest_hex}  verified {record.match_count} time(s)")

    elif args.command == "qr":
        record = store.get(args.record_id)
        if record is None:
            print(f"Error: record not found: {args.record_id}", file=sys.stderr)
            return 1
        payload = matcher.create_qr_payload(record)
        args.output.write_bytes(render_qr_png(payload, settings.qr_box_size, settings.qr_border))
        print(f"✓ QR code written: {args.output}")

    elif args.command == "clear":
        if not args.yes:
            print("Refusing to clear records without --yes (this cannot be undone)", file=sys.stderr)
            return 1
        store.clear()
        print("✓ All verification records cleared")

    return 0


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """CLI entry point; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = settings or get_settings()

    configure_logging(settings.log_level)

    if args.command is None:
        if settings.frontend == "api":
            args.command = "serve"
        else:
            parser.print_help()
            return 1

    try:
        return run(args, settings)
    except SnapHashError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e.strerror or e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
