"""SQLite snapshot store and debounced writer."""

from __future__ import annotations

import sqlite3
import threading
import time

import pytest

from visual_editor.core.errors import PersistenceError
from visual_editor.services.persistence import DebouncedWriter, SnapshotStore
from visual_editor.sync.session import EditingSession


@pytest.fixture
def store(tmp_path) -> SnapshotStore:
    s = SnapshotStore(tmp_path / "snap.sqlite")
    s.ensure_initialized()
    return s


def test_document_catalogue(store):
    row = store.create_document("late deliveries", "orders shipped after payment")
    assert store.get_document(row["id"])["name"] == "late deliveries"
    assert [d["id"] for d in store.list_documents()] == [row["id"]]
    assert store.delete_document(row["id"])
    assert store.get_document(row["id"]) is None
    assert not store.delete_document(row["id"])


def test_snapshot_round_trip_and_unchanged_skip(store):
    doc = store.create_document("q")
    flow = EditingSession().snapshot().to_wire()
    assert store.save_snapshot(doc["id"], flow)
    assert not store.save_snapshot(doc["id"], flow)
    loaded = store.load_snapshot(doc["id"])
    assert loaded.to_wire() == flow


def test_missing_snapshot_falls_back_to_single_box(store):
    snap = store.load_snapshot("never-saved")
    assert [n.type for n in snap.nodes] == ["box"]
    assert snap.edges == []


def test_malformed_snapshot_falls_back(store):
    with sqlite3.connect(store.db_path) as con:
        con.execute(
            "INSERT INTO snapshots (doc_id, flow_json, sha256, updated_at) VALUES (?,?,?,?)",
            ("bad", "{not json", "x", 0),
        )
    snap = store.load_snapshot("bad")
    assert [n.type for n in snap.nodes] == ["box"]


def test_unopenable_store_raises_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(PersistenceError):
        SnapshotStore(blocker / "sub" / "db.sqlite").ensure_initialized()


def test_debounced_writer_coalesces_until_flush():
    written: list[dict] = []
    writer = DebouncedWriter(written.append, delay_s=60)
    writer.schedule({"v": 1})
    writer.schedule({"v": 2})
    assert written == []
    assert writer.pending
    writer.flush()
    assert written == [{"v": 2}]
    assert not writer.pending
    writer.flush()
    assert written == [{"v": 2}]


def test_zero_delay_writes_immediately():
    written: list[dict] = []
    DebouncedWriter(written.append, delay_s=0).schedule({"v": 1})
    assert written == [{"v": 1}]


def test_failed_flush_keeps_payload():
    def fail(payload):
        raise PersistenceError("disk full")

    writer = DebouncedWriter(fail, delay_s=60)
    writer.schedule({"v": 1})
    with pytest.raises(PersistenceError):
        writer.flush()
    assert writer.pending
    writer.cancel()


def test_flush_waits_for_running_timer_write_and_keeps_latest():
    written: list[int] = []
    started = threading.Event()
    release = threading.Event()

    def slow_write(payload):
        if payload["v"] == 1:
            started.set()
            release.wait(2)
        written.append(payload["v"])

    writer = DebouncedWriter(slow_write, delay_s=0.01)
    writer.schedule({"v": 1})
    assert started.wait(2)

    writer.schedule({"v": 2})
    flusher = threading.Thread(target=writer.flush)
    flusher.start()
    time.sleep(0.05)
    assert written == []

    release.set()
    flusher.join(2)
    assert written == [1, 2]
    assert not writer.pending


def test_superseded_payload_is_not_written():
    written: list[int] = []
    writer = DebouncedWriter(lambda p: written.append(p["v"]), delay_s=60)
    writer.schedule({"v": 1})
    stale = writer._take()
    writer.schedule({"v": 2})
    writer.flush()
    writer._write_item(stale)
    assert written == [2]
