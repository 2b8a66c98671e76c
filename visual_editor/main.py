# ------------------------------------------------------------
# Module: visual_editor/main.py
# Purpose: FastAPI application factory and ASGI entry point.
# ------------------------------------------------------------

"""ASGI app for the visual query editor backend.

Run locally with:
    uvicorn visual_editor.main:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from visual_editor.api.errors import install_error_handlers
from visual_editor.api.routes import router as v1_router
from visual_editor.core.config import settings
from visual_editor.core.lifespan import lifespan
from visual_editor.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="OCPQ Visual Editor", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Snapshot-SHA256"],
    )
    install_error_handlers(app)
    app.include_router(v1_router, prefix="/v1")
    return app


app = create_app()
