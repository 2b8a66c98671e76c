# ------------------------------------------------------------
# Module: visual_editor/api/v1/documents.py
# Purpose: Document catalogue, editing session, scope, rendering and evaluation routes.
# ------------------------------------------------------------

"""Per-document endpoints under `/v1/documents`.

Responsibilities
----------------
- Catalogue CRUD (`{id, name, description}`).
- Load/replace the working graph snapshot; direct node/edge edits.
- Commit the graph to a tree; scope and predicate rendering per node.
- Evaluate via the external engine and serve the current overlay.

Notes
-----
- The controller stays thin: all state lives in `DocumentService`
  (`request.app.state.documents`).
- Exceptions from the core map to HTTP in `api.errors`; only request-shape
  problems are turned into `HTTPException` here.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder

from visual_editor.api.v1.schemas import BoxUpdate, DocumentCreate, EdgeCreate, EdgePatch, NodeCreate
from visual_editor.overlay.results import RootAggregate, annotate_graph
from visual_editor.registry import default_registry, tag_of
from visual_editor.services.documents import DocumentService
from visual_editor.sync.graph import KIND_BY_NODE_TYPE, FlowSnapshot
from visual_editor.utils.hashing import fingerprint

router: APIRouter = APIRouter()
log = logging.getLogger("visual_editor.api.documents")

SNAPSHOT_HEADER = "X-Snapshot-SHA256"


def get_documents(request: Request) -> DocumentService:
    return request.app.state.documents


def _commit_payload(committed) -> dict:
    return {
        "version": committed.version,
        "ok": committed.ok,
        "tree": committed.tree.to_wire(),
        "node_id_to_index": committed.node_id_to_index,
        "issues": [i.as_dict() for i in committed.issues],
    }


# ---- catalogue ----------------------------------------------------------


@router.post("", status_code=201)
def create_document(body: DocumentCreate, docs: DocumentService = Depends(get_documents)) -> dict:
    return dict(docs.create(body.name, body.description))


@router.get("")
def list_documents(docs: DocumentService = Depends(get_documents)) -> list[dict]:
    return [dict(r) for r in docs.list_documents()]


@router.get("/{doc_id}")
def read_document(doc_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    return dict(docs.get(doc_id))


@router.delete("/{doc_id}", status_code=204)
def delete_document(doc_id: str, docs: DocumentService = Depends(get_documents)) -> Response:
    docs.delete(doc_id)
    return Response(status_code=204)


# ---- working graph ------------------------------------------------------


@router.get("/{doc_id}/flow")
def read_flow(doc_id: str, response: Response, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    wire = session.snapshot().to_wire()
    response.headers[SNAPSHOT_HEADER] = fingerprint(wire)
    response.headers["Cache-Control"] = "no-store"
    return wire


@router.put("/{doc_id}/flow")
def replace_flow(
    doc_id: str,
    body: FlowSnapshot,
    response: Response,
    docs: DocumentService = Depends(get_documents),
) -> dict:
    session = docs.replace_flow(doc_id, body)
    wire = session.snapshot().to_wire()
    response.headers[SNAPSHOT_HEADER] = fingerprint(wire)
    return {"version": session.version}


@router.post("/{doc_id}/nodes", status_code=201)
def add_node(doc_id: str, body: NodeCreate, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    try:
        if body.type == "box":
            node = session.add_box(body.x, body.y, body.box, node_id=body.id)
        else:
            if body.box is not None:
                raise ValueError(f"{body.type} node must not carry a box payload")
            node = session.add_gate(KIND_BY_NODE_TYPE[body.type], body.x, body.y, node_id=body.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"version": session.version, "node": node.model_dump(mode="json", by_alias=True, exclude_none=True)}


@router.put("/{doc_id}/nodes/{node_id}/box")
def update_box(doc_id: str, node_id: str, body: BoxUpdate, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    try:
        session.update_box(node_id, body.box)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"version": session.version}


@router.delete("/{doc_id}/nodes/{node_id}")
def remove_node(doc_id: str, node_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    session.remove_node(node_id)
    return {"version": session.version}


@router.post("/{doc_id}/edges", status_code=201)
def add_edge(doc_id: str, body: EdgeCreate, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    edge = session.add_edge(body.source, body.target, name=body.name, source_handle=body.source_handle)
    return {"version": session.version, "edge": edge.model_dump(mode="json", by_alias=True, exclude_none=True)}


@router.patch("/{doc_id}/edges/{edge_id}")
def patch_edge(doc_id: str, edge_id: str, body: EdgePatch, docs: DocumentService = Depends(get_documents)) -> dict:
    """Rename and/or set color, minCount, maxCount; a rename is validated first."""
    session = docs.session(doc_id)
    if body.name is not None:
        session.rename_edge(edge_id, body.name)
    meta = body.meta_changes()
    if meta:
        session.update_edge_meta(edge_id, **meta)
    edge = session.edge(edge_id)
    return {"version": session.version, "edge": edge.model_dump(mode="json", by_alias=True, exclude_none=True)}


@router.delete("/{doc_id}/edges/{edge_id}")
def remove_edge(doc_id: str, edge_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    session.remove_edge(edge_id)
    return {"version": session.version}


# ---- commit / scope / render -------------------------------------------


@router.post("/{doc_id}/commit")
def commit(doc_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    committed = docs.session(doc_id).commit()
    payload = _commit_payload(committed)
    payload["scope_issues"] = [i.as_dict() for i in committed.resolver.check_all()]
    return payload


@router.get("/{doc_id}/scope/{node_id}")
def scope(doc_id: str, node_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    session = docs.session(doc_id)
    out = session.scope(node_id)
    out["issues"] = [i.as_dict() for i in session.scope_issues(node_id)]
    out["version"] = session.version
    return out


@router.get("/{doc_id}/render/{node_id}")
def render(
    doc_id: str,
    node_id: str,
    compact: bool = False,
    editors: bool = False,
    docs: DocumentService = Depends(get_documents),
) -> dict:
    """Display text (and optionally editor forms) for every predicate on a box."""
    session = docs.session(doc_id)
    node = session.node(node_id)
    box = node.data.box
    out: dict = {"node_id": node_id, "type": node.type}
    if box is None:
        return out
    ctx = session.editor_context(node_id) if editors else None
    for key, values in (
        ("filters", box.filters),
        ("size_filters", box.size_filters),
        ("constraints", box.constraints),
    ):
        rows = []
        for value in values:
            row = {"type": tag_of(value), "text": default_registry.render_display(value, compact)}
            if ctx is not None:
                row["editor"] = jsonable_encoder(default_registry.render_editor(value, ctx))
            rows.append(row)
        out[key] = rows
    return out


# ---- evaluation ---------------------------------------------------------


def _no_results(version: int) -> dict:
    return {
        "version": version,
        "evalRes": {},
        "aggregate": RootAggregate(0, 0).as_dict(),
        "objectIds": [],
        "eventIds": [],
    }


@router.post("/{doc_id}/evaluate")
def evaluate(doc_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    """Evaluate the committed tree.

    A result that arrives after the graph moved on (or after a newer request)
    is discarded: the body then carries no results, `accepted: false`, the
    current `version` and the `evaluatedVersion` it was computed for.
    """
    outcome = docs.evaluate(doc_id)
    if outcome.overlay is None:
        raise HTTPException(status_code=422, detail=_commit_payload(outcome.committed))
    if not outcome.accepted:
        payload = _no_results(docs.session(doc_id).version)
        payload["accepted"] = False
        payload["evaluatedVersion"] = outcome.committed.version
        payload["nodeIdToIndex"] = {}
        return payload
    payload = outcome.overlay.as_dict()
    payload["accepted"] = True
    payload["evaluatedVersion"] = outcome.committed.version
    payload["nodeIdToIndex"] = outcome.committed.node_id_to_index
    log.info(
        "evaluate doc=%s version=%s %s",
        doc_id,
        outcome.committed.version,
        outcome.overlay.aggregate.display_text(),
    )
    return payload


@router.get("/{doc_id}/overlay")
def overlay(doc_id: str, docs: DocumentService = Depends(get_documents)) -> dict:
    """Current overlay plus the working nodes/edges with evaluation badges attached."""
    session = docs.session(doc_id)
    current = docs.overlay(doc_id)
    if current is None:
        payload = _no_results(session.version)
        results = {}
    else:
        payload = current.as_dict()
        results = current.results
    nodes, edges = annotate_graph(session.nodes, session.edges, results)
    wire = FlowSnapshot(nodes=nodes, edges=edges).to_wire()
    payload["nodes"] = wire["nodes"]
    payload["edges"] = wire["edges"]
    return payload
