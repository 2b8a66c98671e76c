# ------------------------------------------------------------
# Module: visual_editor/overlay/tracker.py
# Purpose: Version-tagged acceptance of evaluation results (last request wins).
# ------------------------------------------------------------

"""Stale-result protection for the evaluation overlay.

Editing continues while an evaluation is in flight. Every request gets a
ticket carrying the tree version it was computed against; a response is
shown only if it answers the *latest* ticket and the tree has not changed
since. Anything else is dropped.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Generic, TypeVar

log = logging.getLogger("visual_editor.overlay")

T = TypeVar("T")


@dataclass(frozen=True)
class Ticket:
    request_id: int
    version: int


class ResultTracker(Generic[T]):
    """Holds the current overlay for one document."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._latest: Ticket | None = None
        self._current: T | None = None
        self._current_version: int | None = None

    def begin(self, version: int) -> Ticket:
        """Register a new request; older in-flight requests become stale."""
        with self._lock:
            ticket = Ticket(next(self._ids), version)
            self._latest = ticket
            return ticket

    def accept(self, ticket: Ticket, current_version: int, result: T) -> bool:
        """Install `result` if `ticket` is the latest and the tree is unchanged."""
        with self._lock:
            if self._latest is None or ticket.request_id != self._latest.request_id:
                log.info("drop superseded result request=%s", ticket.request_id)
                return False
            if ticket.version != current_version:
                log.info(
                    "drop stale result request=%s version=%s current=%s",
                    ticket.request_id,
                    ticket.version,
                    current_version,
                )
                return False
            self._current = result
            self._current_version = ticket.version
            return True

    def invalidate(self, version: int) -> None:
        """Forget the shown result if it was computed for another version."""
        with self._lock:
            if self._current_version is not None and self._current_version != version:
                self._current = None
                self._current_version = None

    def current(self, version: int) -> T | None:
        """Result for `version`, or None (never a result for an older version)."""
        with self._lock:
            if self._current_version != version:
                return None
            return self._current


__all__ = ["ResultTracker", "Ticket"]
