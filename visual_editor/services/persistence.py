# ------------------------------------------------------------
# Module: visual_editor/services/persistence.py
# Purpose: SQLite store for document metadata and graph snapshots; debounced writes.
# ------------------------------------------------------------

"""Snapshot persistence for query documents.

Responsibilities
----------------
- Initialize and maintain the `documents` and `snapshots` tables.
- Create/list/delete documents (`{id, name, description}`).
- Save a document's graph snapshot (skipped when the fingerprint is unchanged).
- Load a snapshot, falling back to the default one-box graph when it is
  missing or unreadable.
- Coalesce bursts of edits into one write (`DebouncedWriter`), flushed on teardown.

Notes
-----
- Timestamps are milliseconds since the Unix epoch.
- WAL mode lets API reads proceed while a debounced write is running.
- sqlite errors surface as `PersistenceError`; the caller's session is untouched.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypedDict

from pydantic import ValidationError

from visual_editor.core.config import settings
from visual_editor.core.errors import PersistenceError
from visual_editor.sync.graph import FlowSnapshot
from visual_editor.sync.session import empty_snapshot
from visual_editor.utils.hashing import fingerprint
from visual_editor.utils.timing import log_timer

log = logging.getLogger("visual_editor.persistence")


class DocumentRow(TypedDict):
    id: str
    name: str
    description: str
    created_at: int
    updated_at: int


def _now_ms() -> int:
    return int(time.time() * 1000)


class SnapshotStore:
    """SQLite-backed document catalogue and snapshot table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path is not None else settings.snapshot_db

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection with dict-like rows; sqlite errors become PersistenceError."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            con = sqlite3.connect(self.db_path.as_posix(), timeout=30)
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"cannot open snapshot store at {self.db_path}: {e}") from e
        con.row_factory = sqlite3.Row
        try:
            con.execute("PRAGMA synchronous=NORMAL;")
            yield con
            con.commit()
        except sqlite3.Error as e:
            con.rollback()
            raise PersistenceError(f"snapshot store failure: {e}") from e
        finally:
            con.close()

    @staticmethod
    def _ensure_schema(con: sqlite3.Connection) -> None:
        con.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL
            );
            """
        )
        con.execute(
            """
            CREATE TABLE IF NOT EXISTS snapshots (
                doc_id TEXT PRIMARY KEY,
                flow_json TEXT NOT NULL,
                sha256 TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            );
            """
        )

    def ensure_initialized(self) -> None:
        """Create the DB file and schema (idempotent); called at startup."""
        with self._connect() as con:
            # journal_mode=WAL persists at the DB level
            con.execute("PRAGMA journal_mode=WAL;")
            self._ensure_schema(con)

    # ---- documents -------------------------------------------------------

    @staticmethod
    def _row(raw: sqlite3.Row) -> DocumentRow:
        return {
            "id": raw["id"],
            "name": raw["name"],
            "description": raw["description"] or "",
            "created_at": int(raw["created_at"]),
            "updated_at": int(raw["updated_at"]),
        }

    def create_document(self, name: str, description: str = "", doc_id: str | None = None) -> DocumentRow:
        doc_id = doc_id or str(uuid.uuid4())
        now = _now_ms()
        with self._connect() as con:
            con.execute(
                "INSERT INTO documents (id, name, description, created_at, updated_at) VALUES (?,?,?,?,?)",
                (doc_id, name, description, now, now),
            )
        log.info("document created id=%s name=%r", doc_id, name)
        return {"id": doc_id, "name": name, "description": description, "created_at": now, "updated_at": now}

    def get_document(self, doc_id: str) -> DocumentRow | None:
        with self._connect() as con:
            row = con.execute("SELECT * FROM documents WHERE id=?", (doc_id,)).fetchone()
        return self._row(row) if row else None

    def list_documents(self) -> list[DocumentRow]:
        with self._connect() as con:
            rows = con.execute("SELECT * FROM documents ORDER BY created_at, id").fetchall()
        return [self._row(r) for r in rows]

    def delete_document(self, doc_id: str) -> bool:
        with self._connect() as con:
            cur = con.execute("DELETE FROM documents WHERE id=?", (doc_id,))
            con.execute("DELETE FROM snapshots WHERE doc_id=?", (doc_id,))
            deleted = cur.rowcount > 0
        if deleted:
            log.info("document deleted id=%s", doc_id)
        return deleted

    # ---- snapshots -------------------------------------------------------

    def save_snapshot(self, doc_id: str, flow: dict[str, Any]) -> bool:
        """Store `flow` for `doc_id`; returns False when the stored copy is identical."""
        sha = fingerprint(flow)
        with log_timer("snapshot.save", log, expected=(PersistenceError,), doc=doc_id, sha=sha[:12]):
            with self._connect() as con:
                row = con.execute("SELECT sha256 FROM snapshots WHERE doc_id=?", (doc_id,)).fetchone()
                if row and row["sha256"] == sha:
                    return False
                now = _now_ms()
                con.execute(
                    """
                    INSERT INTO snapshots (doc_id, flow_json, sha256, updated_at) VALUES (?,?,?,?)
                    ON CONFLICT(doc_id) DO UPDATE SET
                        flow_json=excluded.flow_json, sha256=excluded.sha256, updated_at=excluded.updated_at
                    """,
                    (doc_id, json.dumps(flow, ensure_ascii=False), sha, now),
                )
                con.execute("UPDATE documents SET updated_at=? WHERE id=?", (now, doc_id))
        return True

    def load_snapshot(self, doc_id: str) -> FlowSnapshot:
        """Stored graph for `doc_id`, or the default one-box graph."""
        with self._connect() as con:
            row = con.execute("SELECT flow_json FROM snapshots WHERE doc_id=?", (doc_id,)).fetchone()
        if row is None:
            log.debug("no snapshot for doc=%s; using empty tree", doc_id)
            return empty_snapshot()
        try:
            return FlowSnapshot.model_validate(json.loads(row["flow_json"]))
        except (ValueError, ValidationError):
            log.warning("malformed snapshot for doc=%s; using empty tree", doc_id, exc_info=True)
            return empty_snapshot()


class DebouncedWriter:
    """Coalesce writes: only the latest payload within `delay_s` is written.

    A delay of 0 writes synchronously. Failures on the timer thread are
    logged and the payload is kept, so the next `flush()` retries it.
    Writes are serialized and sequence-numbered; a payload older than the
    last one written is dropped.
    """

    def __init__(self, write: Callable[[dict[str, Any]], Any], delay_s: float):
        self._write = write
        self._delay = max(0.0, float(delay_s))
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._seq = 0
        self._written_seq = 0
        self._pending: tuple[int, dict[str, Any]] | None = None
        self._timer: threading.Timer | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, payload: dict[str, Any]) -> None:
        with self._lock:
            self._seq += 1
            self._pending = (self._seq, payload)
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._delay > 0:
                self._timer = threading.Timer(self._delay, self._fire)
                self._timer.daemon = True
                self._timer.start()
                return
        self.flush()

    def _take(self) -> tuple[int, dict[str, Any]] | None:
        with self._lock:
            item, self._pending = self._pending, None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return item

    def _restore(self, item: tuple[int, dict[str, Any]]) -> None:
        with self._lock:
            if self._pending is None:
                self._pending = item

    def _write_item(self, item: tuple[int, dict[str, Any]]) -> None:
        seq, payload = item
        with self._write_lock:
            if seq <= self._written_seq:
                log.debug("dropping superseded write seq=%d (written=%d)", seq, self._written_seq)
                return
            try:
                self._write(payload)
            except PersistenceError:
                self._restore(item)
                raise
            self._written_seq = seq

    def _fire(self) -> None:
        item = self._take()
        if item is None:
            return
        try:
            self._write_item(item)
        except PersistenceError:
            log.error("debounced write failed; kept for retry", exc_info=True)

    def flush(self) -> None:
        """Write the pending payload now (raises PersistenceError on failure).

        Blocks behind a write already running on the timer thread.
        """
        item = self._take()
        if item is None:
            return
        self._write_item(item)

    def cancel(self) -> None:
        self._take()


__all__ = ["DebouncedWriter", "DocumentRow", "SnapshotStore"]
