# ------------------------------------------------------------
# Module: visual_editor/api/routes.py
# Purpose: Compose and expose all v1 FastAPI routers.
# ------------------------------------------------------------

"""Composition root for versioned routing; `main` mounts this under /v1.

Inclusion order is kept stable so OpenAPI tag groups stay predictable.
"""

from __future__ import annotations

from fastapi import APIRouter

from visual_editor.api.v1.documents import router as documents_router
from visual_editor.api.v1.health import router as health_router
from visual_editor.api.v1.tree import graph_router
from visual_editor.api.v1.tree import router as tree_router

router: APIRouter = APIRouter()

router.include_router(health_router, prefix="/health", tags=["health"])
# Stateless conversions share the "tree" tag.
router.include_router(tree_router, prefix="/tree", tags=["tree"])
router.include_router(graph_router, prefix="/graph", tags=["tree"])
router.include_router(documents_router, prefix="/documents", tags=["documents"])
