# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""Tests for the verification record store."""

import json
import threading

import pytest

from snaphash.errors import PersistenceWriteError
from snaphash.storage import MemoryBackend
from snaphash.store import DEFAULT_STORE_KEY, VerificationStore
from snaphash.types import VerificationRecord

FULL_DIGEST = "a1b2c3d4e5f60718" + "0" * 48
OTHER_DIGEST = "ffeeddccbbaa9988" + "1" * 48


def make_record(record_id: str, digest_hex: str, recorded_at: int = 1704067200000, **overrides) -> VerificationRecord:
    data = {
        "id": record_id,
        "digestHex": digest_hex,
        "shortDigestHex": digest_hex[:16],
        "algorithm": "SHA-256",
        "recordedAtEpochMs": recorded_at,
        "context": {
            "capturedAtIso": "2024-01-01T00:00:00Z",
            "userAgent": "X",
            "platform": "Y",
            "devicePixelRatio": 2,
            "screenResolution": {"width": 1080, "height": 2400},
            "imageSize": {"width": 640, "height": 480},
        },
        "previewRef": "",
        "matchCount": 1,
    }
    data.update(overrides)
    return VerificationRecord.model_validate(data)


class FailingBackend(MemoryBackend):
    """Backend whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def write(self, key, document):
        if self.fail_writes:
            raise OSError("disk full")
        super().write(key, document)


class TestLookup:
    """Lookup precedence: full, then short, then partial."""

    @pytest.fixture
    def populated(self, store):
        store.add(make_record("rec_1", FULL_DIGEST))
        return store

    def test_exact_full_digest(self, populated):
        assert populated.find_by_digest(FULL_DIGEST).id == "rec_1"

    def test_exact_short_digest(self, populated):
        assert populated.find_by_digest("a1b2c3d4e5f60718").id == "rec_1"

    def test_case_and_whitespace_insensitive(self, populated):
        assert populated.find_by_digest("  " + FULL_DIGEST.upper() + "\n").id == "rec_1"

    def test_unrelated_digest(self, populated):
        assert populated.find_by_digest(OTHER_DIGEST) is None
        assert populated.find_by_digest(OTHER_DIGEST[:16]) is None

    def test_partial_prefix_of_full_digest(self, populated):
        assert populated.find_by_digest(FULL_DIGEST[:24]).id == "rec_1"

    def test_input_extending_short_digest(self, populated):
        """An input starting with a record's short digest matches it."""
        longer = "a1b2c3d4e5f60718" + "9" * 48
        assert populated.find_by_digest(longer).id == "rec_1"

    def test_short_partial_inputs_never_match(self, populated):
        assert populated.find_by_digest("a1b2") is None
        assert populated.find_by_digest("") is None
        assert populated.find_by_digest("   ") is None

    def test_non_string_input(self, populated):
        assert populated.find_by_digest(None) is None

    def test_exact_match_beats_partial(self, store):
        """A full-digest hit wins over a newer record that only matches partially."""
        exact = make_record("exact", FULL_DIGEST)
        # Newer record shares the short digest but has a different full digest
        partial = make_record("partial", "a1b2c3d4e5f60718" + "2" * 48)
        store.add(exact)
        store.add(partial)

        assert store.find_by_digest(FULL_DIGEST).id == "exact"

    def test_short_match_prefers_newest(self, store):
        store.add(make_record("older", FULL_DIGEST))
        store.add(make_record("newer", "a1b2c3d4e5f60718" + "3" * 48))

        assert store.find_by_digest("a1b2c3d4e5f60718").id == "newer"


def test_add_inserts_newest_first(store):
    store.add(make_record("first", FULL_DIGEST))
    store.add(make_record("second", OTHER_DIGEST))

    assert [r.id for r in store.records()] == ["second", "first"]
    assert len(store) == 2


def test_add_rejects_duplicate_id(store):
    store.add(make_record("dup", FULL_DIGEST))

    with pytest.raises(ValueError):
        store.add(make_record("dup", OTHER_DIGEST))


def test_add_persists_immediately(store, backend):
    store.add(make_record("rec_1", FULL_DIGEST))

    document = json.loads(backend.read(DEFAULT_STORE_KEY))
    assert len(document) == 1
    assert document[0]["id"] == "rec_1"
    assert document[0]["digestHex"] == FULL_DIGEST
    assert document[0]["shortDigestHex"] == FULL_DIGEST[:16]
    assert document[0]["matchCount"] == 1
    assert document[0]["context"]["screenResolution"] == {"width": 1080, "height": 2400}


def test_records_returns_copy(store):
    store.add(make_record("rec_1", FULL_DIGEST))

    store.records().clear()
    assert len(store) == 1


def test_get(store):
    store.add(make_record("rec_1", FULL_DIGEST))
    assert store.get("rec_1").digest_hex == FULL_DIGEST
    assert store.get("missing") is None


def test_record_match_increments_and_persists(store, backend):
    store.add(make_record("rec_1", FULL_DIGEST))

    updated = store.record_match("rec_1")
    updated = store.record_match("rec_1")

    assert updated.match_count == 3
    assert store.get("rec_1").match_count == 3
    assert json.loads(backend.read(DEFAULT_STORE_KEY))[0]["matchCount"] == 3


def test_record_match_unknown_id(store):
    with pytest.raises(KeyError):
        store.record_match("missing")


def test_match_by_digest(store):
    store.add(make_record("rec_1", FULL_DIGEST))

    assert store.match_by_digest(FULL_DIGEST[:16]).match_count == 2
    assert store.match_by_digest(OTHER_DIGEST) is None
    assert store.get("rec_1").match_count == 2


def test_match_by_digest_blocks_concurrent_clear(backend):
    class ClearDuringLookupStore(VerificationStore):
        clearer = None

        def find_by_digest(self, value):
            record = super().find_by_digest(value)
            self.clearer = threading.Thread(target=self.clear)
            self.clearer.start()
            self.clearer.join(timeout=0.2)
            return record

    store = ClearDuringLookupStore(backend)
    store.add(make_record("rec_1", FULL_DIGEST))

    updated = store.match_by_digest(FULL_DIGEST)
    store.clearer.join()

    assert updated.match_count == 2
    assert len(store) == 0


def test_clear_is_total(store, backend):
    store.add(make_record("rec_1", FULL_DIGEST))
    store.add(make_record("rec_2", OTHER_DIGEST))

    store.clear()

    assert store.find_by_digest(FULL_DIGEST) is None
    assert store.find_by_digest(OTHER_DIGEST[:16]) is None
    assert len(store) == 0
    assert json.loads(backend.read(DEFAULT_STORE_KEY)) == []


def test_reload_round_trip(backend):
    first = VerificationStore(backend)
    first.add(make_record("rec_1", FULL_DIGEST))
    first.add(make_record("rec_2", OTHER_DIGEST))

    second = VerificationStore(backend)

    assert [r.id for r in second.records()] == ["rec_2", "rec_1"]
    assert second.find_by_digest(FULL_DIGEST).id == "rec_1"
    assert second.last_warning is None


def test_custom_key(backend):
    store = VerificationStore(backend, key="other_records")
    store.add(make_record("rec_1", FULL_DIGEST))

    assert backend.read("other_records") is not None
    assert backend.read(DEFAULT_STORE_KEY) is None


@pytest.mark.parametrize(
    "document",
    [
        "{not json",
        '{"id": "rec_1"}',
        '[{"id": "rec_1"}]',
        '[{"id": "rec_1", "digestHex": "nothex"}]',
        "[" + "1" * 5000 + "]",
        "[" * 100000,
    ],
)
def test_corrupt_document_fails_soft(document):
    backend = MemoryBackend({DEFAULT_STORE_KEY: document})

    store = VerificationStore(backend)

    assert len(store) == 0
    assert store.last_warning is not None
    assert store.find_by_digest(FULL_DIGEST) is None


def test_duplicate_ids_in_document_fail_soft():
    record = make_record("rec_1", FULL_DIGEST).to_wire()
    backend = MemoryBackend({DEFAULT_STORE_KEY: json.dumps([record, record])})

    store = VerificationStore(backend)

    assert len(store) == 0
    assert store.last_warning is not None


def test_unreadable_backend_fails_soft():
    class UnreadableBackend(MemoryBackend):
        def read(self, key):
            raise OSError("permission denied")

    store = VerificationStore(UnreadableBackend())

    assert len(store) == 0
    assert store.last_warning is not None


def test_load_returns_warning_then_recovers(backend):
    backend.write(DEFAULT_STORE_KEY, "garbage")
    store = VerificationStore(backend, autoload=False)

    assert store.load_from_persistence() is not None

    backend.write(DEFAULT_STORE_KEY, "[]")
    assert store.load_from_persistence() is None
    assert store.last_warning is None


def test_empty_document_is_empty_store():
    store = VerificationStore(MemoryBackend({DEFAULT_STORE_KEY: ""}))
    assert len(store) == 0
    assert store.last_warning is None


def test_write_failure_rolls_back_add():
    backend = FailingBackend()
    store = VerificationStore(backend)
    store.add(make_record("rec_1", FULL_DIGEST))

    backend.fail_writes = True
    with pytest.raises(PersistenceWriteError):
        store.add(make_record("rec_2", OTHER_DIGEST))

    assert [r.id for r in store.records()] == ["rec_1"]
    assert store.find_by_digest(OTHER_DIGEST) is None


def test_write_failure_rolls_back_clear_and_match():
    backend = FailingBackend()
    store = VerificationStore(backend)
    store.add(make_record("rec_1", FULL_DIGEST))

    backend.fail_writes = True
    with pytest.raises(PersistenceWriteError):
        store.clear()
    with pytest.raises(PersistenceWriteError):
        store.record_match("rec_1")

    assert store.get("rec_1").match_count == 1


def test_persist_surfaces_write_error():
    backend = FailingBackend()
    store = VerificationStore(backend)
    backend.fail_writes = True

    with pytest.raises(PersistenceWriteError) as exc_info:
        store.persist()
    assert exc_info.value.user_message == "records could not be saved"


def test_record_rejects_inconsistent_short_digest():
    with pytest.raises(ValueError):
        make_record("bad", FULL_DIGEST, shortDigestHex="ffffffffffffffff")


def test_record_rejects_zero_match_count():
    with pytest.raises(ValueError):
        make_record("bad", FULL_DIGEST, matchCount=0)
