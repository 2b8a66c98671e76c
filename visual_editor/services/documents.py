# ------------------------------------------------------------
# Module: visual_editor/services/documents.py
# Purpose: Query-document catalogue with one editing session and overlay per document.
# ------------------------------------------------------------

"""Document service: the glue between sessions, storage and evaluation.

Responsibilities
----------------
- Catalogue: create/list/get/delete documents (`{id, name, description}`).
- Lazily open an `EditingSession` per document from its stored snapshot.
- Persist every session change through a per-document `DebouncedWriter`.
- Run evaluations with stale-result protection (`ResultTracker`) and keep
  the accepted overlay per document.

Notes
-----
- A failed evaluation or write never touches the session, the committed
  tree or the overlay that is currently shown.
- Structural edits invalidate the shown overlay on the next read.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from visual_editor.core.config import settings
from visual_editor.core.errors import NotFoundError, PersistenceError
from visual_editor.core.logging import DocumentLogger, document_logger
from visual_editor.overlay.results import Overlay, build_overlay
from visual_editor.overlay.tracker import ResultTracker
from visual_editor.services.evaluation import evaluate_tree
from visual_editor.services.persistence import DebouncedWriter, DocumentRow, SnapshotStore
from visual_editor.sync.graph import FlowSnapshot
from visual_editor.sync.session import CommittedTree, EditingSession

log = logging.getLogger("visual_editor.documents")


@dataclass(frozen=True)
class EvaluationOutcome:
    committed: CommittedTree
    overlay: Overlay | None
    accepted: bool


@dataclass
class _OpenDocument:
    session: EditingSession
    writer: DebouncedWriter
    tracker: ResultTracker[Overlay]
    log: DocumentLogger


class DocumentService:
    def __init__(self, store: SnapshotStore, debounce_s: float | None = None):
        self.store = store
        self.debounce_s = settings.SAVE_DEBOUNCE_S if debounce_s is None else debounce_s
        self._open: dict[str, _OpenDocument] = {}
        self._lock = threading.Lock()

    # ---- catalogue -------------------------------------------------------

    def create(self, name: str, description: str = "") -> DocumentRow:
        return self.store.create_document(name, description)

    def list_documents(self) -> list[DocumentRow]:
        return self.store.list_documents()

    def get(self, doc_id: str) -> DocumentRow:
        row = self.store.get_document(doc_id)
        if row is None:
            raise NotFoundError(f"unknown document: {doc_id}")
        return row

    def delete(self, doc_id: str) -> None:
        with self._lock:
            opened = self._open.pop(doc_id, None)
        if opened is not None:
            opened.writer.cancel()
        if not self.store.delete_document(doc_id):
            raise NotFoundError(f"unknown document: {doc_id}")

    # ---- sessions --------------------------------------------------------

    def _opened(self, doc_id: str) -> _OpenDocument:
        with self._lock:
            opened = self._open.get(doc_id)
            if opened is not None:
                return opened
        self.get(doc_id)
        snapshot = self.store.load_snapshot(doc_id)
        with self._lock:
            opened = self._open.get(doc_id)
            if opened is None:
                session = EditingSession(snapshot, document_id=doc_id)
                writer = DebouncedWriter(
                    lambda flow, _id=doc_id: self.store.save_snapshot(_id, flow),
                    self.debounce_s,
                )
                opened = _OpenDocument(session, writer, ResultTracker(), document_logger(log, doc_id))
                session.subscribe(self._on_change)
                self._open[doc_id] = opened
                opened.log.info("session opened nodes=%d", len(session.nodes))
            return opened

    def _on_change(self, session: EditingSession) -> None:
        opened = self._open.get(session.document_id)
        if opened is None:
            return
        opened.tracker.invalidate(session.version)
        opened.writer.schedule(session.snapshot().to_wire())

    def session(self, doc_id: str) -> EditingSession:
        return self._opened(doc_id).session

    def replace_flow(self, doc_id: str, snapshot: FlowSnapshot) -> EditingSession:
        session = self.session(doc_id)
        session.replace(snapshot)
        return session

    # ---- evaluation ------------------------------------------------------

    def evaluate(self, doc_id: str) -> EvaluationOutcome:
        """Commit and evaluate; returns without calling the engine if the tree is invalid."""
        opened = self._opened(doc_id)
        committed = opened.session.commit()
        if not committed.ok:
            return EvaluationOutcome(committed, None, accepted=False)
        ticket = opened.tracker.begin(committed.version)
        resp = evaluate_tree(committed.tree)
        overlay = build_overlay(
            committed.version,
            resp.results_by_index(),
            committed.node_id_to_index,
            committed.root_node_ids(),
            resp.object_ids,
            resp.event_ids,
        )
        accepted = opened.tracker.accept(ticket, opened.session.version, overlay)
        if not accepted:
            opened.log.info(
                "discarding result for version=%s (current=%s)", committed.version, opened.session.version
            )
        return EvaluationOutcome(committed, overlay, accepted)

    def overlay(self, doc_id: str) -> Overlay | None:
        opened = self._opened(doc_id)
        return opened.tracker.current(opened.session.version)

    # ---- teardown --------------------------------------------------------

    def flush_all(self) -> None:
        """Write every pending snapshot; failures are logged per document."""
        with self._lock:
            opened = list(self._open.values())
        for doc in opened:
            try:
                doc.writer.flush()
            except PersistenceError:
                doc.log.error("flush failed", exc_info=True)


__all__ = ["DocumentService", "EvaluationOutcome"]
