# ------------------------------------------------------------
# Module: visual_editor/core/lifespan.py
# Purpose: Manage FastAPI startup and shutdown.
# ------------------------------------------------------------

"""FastAPI lifespan context.

Responsibilities
----------------
- Open the snapshot store (schema is created idempotently) at startup.
- Attach the `DocumentService` to `app.state.documents`.
- Flush pending debounced snapshot writes at shutdown.

Developer Guidance
------------------
- Fail fast on startup errors; a half-initialized store is worse than none.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from visual_editor.services.documents import DocumentService
from visual_editor.services.persistence import SnapshotStore

logger = logging.getLogger("visual_editor.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    t0 = time.perf_counter()
    try:
        logger.info("startup begin")
        store = SnapshotStore()
        store.ensure_initialized()
        app.state.documents = DocumentService(store)
        logger.info("startup ok db=%s duration_ms=%.1f", store.db_path, (time.perf_counter() - t0) * 1000)
    except Exception:
        logger.exception("startup failed")
        raise
    try:
        yield
    finally:
        logger.info("shutdown begin")
        documents = getattr(app.state, "documents", None)
        if documents is not None:
            documents.flush_all()
        logger.info("shutdown ok")
