# ------------------------------------------------------------
# Module: visual_editor/api/v1/health.py
# Purpose: Readiness probe.
# ------------------------------------------------------------

"""Health check endpoint.

Details:
    - `/v1/health/ready` touches the snapshot store; 200 `{"status": "ready"}`
      when it answers, 503 `{"status": "degraded"}` otherwise.
    - The evaluation engine is not probed; it is optional for editing.
"""

import logging

from fastapi import APIRouter, Request, Response

from visual_editor.core.errors import PersistenceError

router: APIRouter = APIRouter()
log = logging.getLogger("visual_editor.api.health")


@router.get("/ready", include_in_schema=True)
def ready(request: Request, res: Response) -> dict[str, str]:
    log.debug("ready check begin")
    try:
        request.app.state.documents.store.list_documents()
        return {"status": "ready"}
    except PersistenceError:
        log.exception("ready check failed")
        res.status_code = 503
        return {"status": "degraded"}
