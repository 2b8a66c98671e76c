# ------------------------------------------------------------
# Module: visual_editor/api/errors.py
# Purpose: Map editor exceptions onto HTTP responses.
# ------------------------------------------------------------

"""Exception handlers installed on the FastAPI app.

| Exception              | Status |
| ---------------------- | ------ |
| NotFoundError          | 404    |
| EdgeNameError          | 409    |
| EvaluationEngineError  | 502    |
| PersistenceError       | 503    |
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from visual_editor.core.errors import (
    EdgeNameError,
    EvaluationEngineError,
    NotFoundError,
    PersistenceError,
)

log = logging.getLogger("visual_editor.api")


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _edge_name(request: Request, exc: EdgeNameError) -> JSONResponse:
    log.info("edge name rejected source=%s name=%r", exc.source, exc.name)
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "source": exc.source, "name": exc.name},
    )


async def _engine(request: Request, exc: EvaluationEngineError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


async def _persistence(request: Request, exc: PersistenceError) -> JSONResponse:
    log.error("persistence failure path=%s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(EdgeNameError, _edge_name)
    app.add_exception_handler(EvaluationEngineError, _engine)
    app.add_exception_handler(PersistenceError, _persistence)
