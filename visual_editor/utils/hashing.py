# ------------------------------------------------------------
# Module: visual_editor/utils/hashing.py
# Purpose: Stable fingerprints for graph snapshots.
# ------------------------------------------------------------

"""SHA-256 fingerprints of JSON payloads.

The persistence layer skips writes whose fingerprint matches the stored one,
and the flow endpoint exposes it as `X-Snapshot-SHA256` so clients can tell
whether their copy is current.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def compute_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def canonical_json(payload: Any) -> bytes:
    """Key-sorted, whitespace-free UTF-8 JSON (same payload, same bytes)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def fingerprint(payload: Any) -> str:
    return compute_sha256(canonical_json(payload))


__all__ = ["canonical_json", "compute_sha256", "fingerprint"]
