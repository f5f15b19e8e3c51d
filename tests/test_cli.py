# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""Tests for the command line front end."""

import json

import pytest

from snaphash.config import Settings
from snaphash.main import build_parser, main
from snaphash.store import DEFAULT_STORE_KEY


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(storage_backend="file", data_dir=tmp_path / "data")


@pytest.fixture
def image_path(tmp_path, jpeg_bytes):
    path = tmp_path / "photo.jpg"
    path.write_bytes(jpeg_bytes)
    return path


def stored_records(settings):
    return json.loads((settings.data_dir / f"{DEFAULT_STORE_KEY}.json").read_text())


def test_capture_then_verify(settings, image_path, capsys):
    assert main(["capture", str(image_path), "--screen", "1080x2400", "--pixel-ratio", "2"], settings) == 0

    records = stored_records(settings)
    assert len(records) == 1
    record = records[0]
    assert record["context"]["imageSize"] == {"width": 640, "height": 480}
    assert record["context"]["screenResolution"] == {"width": 1080, "height": 2400}

    output = capsys.readouterr().out
    assert record["digestHex"] in output

    assert main(["verify", record["shortDigestHex"]], settings) == 0
    output = capsys.readouterr().out
    assert "Hash verified" in output
    assert "Verified 2 time(s)" in output


def test_capture_writes_qr(settings, image_path, tmp_path):
    qr_path = tmp_path / "code.png"

    assert main(["capture", str(image_path), "--qr-output", str(qr_path)], settings) == 0
    assert qr_path.read_bytes().startswith(b"\x89PNG")


def test_verify_qr_payload(settings, image_path, capsys):
    main(["capture", str(image_path)], settings)
    record = stored_records(settings)[0]
    payload = json.dumps({"v": "1.0", "h": record["shortDigestHex"], "t": record["recordedAtEpochMs"], "a": "SHA256"})
    capsys.readouterr()

    assert main(["verify-qr", payload], settings) == 0
    assert "Hash verified" in capsys.readouterr().out

    assert main(["verify-qr", "not a payload"], settings) == 0
    assert "Not a valid verification code" in capsys.readouterr().out


def test_verify_invalid_format(settings, capsys):
    assert main(["verify", "nothex"], settings) == 1
    assert "invalid hash format" in capsys.readouterr().err


def test_verify_not_found(settings, capsys):
    assert main(["verify", "0" * 16], settings) == 0
    assert "Hash not found" in capsys.readouterr().out


def test_records_and_qr(settings, image_path, tmp_path, capsys):
    assert main(["records"], settings) == 0
    assert "No verification records yet" in capsys.readouterr().out

    main(["capture", str(image_path)], settings)
    record_id = stored_records(settings)[0]["id"]
    capsys.readouterr()

    assert main(["records"], settings) == 0
    assert record_id in capsys.readouterr().out

    qr_path = tmp_path / "record.png"
    assert main(["qr", record_id, "--output", str(qr_path)], settings) == 0
    assert qr_path.exists()

    assert main(["qr", "missing", "--output", str(qr_path)], settings) == 1


def test_clear_requires_yes(settings, image_path, capsys):
    main(["capture", str(image_path)], settings)

    assert main(["clear"], settings) == 1
    assert len(stored_records(settings)) == 1

    assert main(["clear", "--yes"], settings) == 0
    assert stored_records(settings) == []


def test_capture_missing_file(settings, tmp_path, capsys):
    assert main(["capture", str(tmp_path / "missing.jpg")], settings) == 1
    assert "Error" in capsys.readouterr().err


def test_capture_non_image_file(settings, tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"not an image")

    assert main(["capture", str(path)], settings) == 1
    assert "invalid capture data" in capsys.readouterr().err


def test_corrupt_store_warns_and_continues(settings, capsys):
    settings.data_dir.mkdir(parents=True)
    (settings.data_dir / f"{DEFAULT_STORE_KEY}.json").write_text("corrupt")

    assert main(["records"], settings) == 0
    captured = capsys.readouterr()
    assert "reset" in captured.err
    assert "No verification records yet" in captured.out


def test_no_command_prints_help(settings):
    assert main([], settings) == 1


def test_parser_rejects_bad_resolution():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["capture", "x.jpg", "--screen", "wide"])
