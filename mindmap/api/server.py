"""
Mind-Map Document Service
=========================

HTTP face of the key-value document store used by the Sync Gateway.
Stores whole wire documents; never merges them.

Endpoints:
- GET  /health                              -> liveness
- GET  /api/v1/documents/{id}               -> current document + revision
- PUT  /api/v1/documents/{id}               -> replace document (last writer wins)
- POST /api/v1/documents/{id}/freeze        -> make document read-only history

Usage:
    uvicorn mindmap.api.server:app --reload
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from ..contracts.base import ErrorCode, MalformedSnapshotError
from ..contracts.wire import decode_snapshot
from ..core.topology import check_forest
from ..logging_config import setup_logging
from ..sync.persistence import InMemoryDocumentStore


logger = logging.getLogger(__name__)


# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Document service started")
    yield
    logger.info("Document service stopped")


def create_app(store: Optional[InMemoryDocumentStore] = None) -> FastAPI:
    app = FastAPI(
        title="Mind-Map Document Service",
        version="0.1.0",
        description="Whole-document store for collaborative mind maps",
        lifespan=lifespan
    )
    app.state.store = store or InMemoryDocumentStore()

    # CORS (editor and viewer run in browsers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _store(request: Request) -> InMemoryDocumentStore:
    return request.app.state.store


# =============================================================================
# ENDPOINTS
# =============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    async def health_check(request: Request):
        """System status."""
        return {"status": "online", "documents": len(_store(request).document_ids())}

    @app.get("/api/v1/documents/{document_id}")
    async def get_document(document_id: str, request: Request):
        store = _store(request)
        document = store.load(document_id)
        if document is None:
            raise HTTPException(status_code=404, detail=f"Unknown document: {document_id}")
        return {
            "document_id": document_id,
            "revision": store.revision(document_id),
            "frozen": store.is_frozen(document_id),
            "document": document,
        }

    @app.put("/api/v1/documents/{document_id}")
    async def put_document(document_id: str, payload: Dict[str, Any], request: Request):
        """
        Replace the stored document.
        Rejects anything the editor itself would refuse to load.
        """
        try:
            snapshot = decode_snapshot(payload)
        except MalformedSnapshotError as e:
            raise HTTPException(status_code=422, detail=str(e))

        check = check_forest(snapshot.nodes, snapshot.edges)
        if not check.is_valid:
            raise HTTPException(status_code=422, detail=check.reason)

        result = _store(request).save(document_id, payload)
        if result.is_failure:
            if result.error.code is ErrorCode.DOCUMENT_FROZEN:
                raise HTTPException(status_code=409, detail=result.error.message)
            raise HTTPException(status_code=500, detail=result.error.message)

        return {"document_id": document_id, "revision": result.revision}

    @app.post("/api/v1/documents/{document_id}/freeze")
    async def freeze_document(document_id: str, request: Request):
        result = _store(request).freeze(document_id)
        if result.is_failure:
            raise HTTPException(status_code=404, detail=result.error.message)
        return {"document_id": document_id, "revision": result.revision, "frozen": True}


app = create_app()
