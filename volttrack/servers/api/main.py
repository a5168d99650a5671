"""
Dashboard API Server - FastAPI HTTP

JSON endpoints behind the browser dashboard: record CRUD, the filtered
records list, dashboard aggregations, and the AI insights / ask panel.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from volttrack import __version__
from volttrack.compute.service import display_status
from volttrack.config import MISConfig, config as default_config
from volttrack.insights import CollaboratorError, InsightsService
from volttrack.models import TransformerDraft, TransformerRecord
from volttrack.query.filters import RecordFilter, filter_records, has_active_filters
from volttrack.reporting.aggregation import build_dashboard
from volttrack.storage import JsonFileStorage, StorageReadError
from volttrack.store import NotFoundError, ReadOnlyStoreError, RecordStore, ValidationError


logger = logging.getLogger(__name__)


class AskRequest(BaseModel):
    question: str


def _record_view(record: TransformerRecord, today: date) -> dict:
    data = record.to_storage()
    data["displayStatus"] = display_status(record, today).value
    return data


def _store(request: Request) -> RecordStore:
    store = request.app.state.store
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Record store not loaded")
    return store


def _insights(request: Request) -> InsightsService:
    insights = request.app.state.insights
    if insights is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Insights service not loaded")
    return insights


def create_app(
    store: Optional[RecordStore] = None,
    insights: Optional[InsightsService] = None,
    cfg: Optional[MISConfig] = None
) -> FastAPI:
    """
    Build the dashboard API.

    Args:
        store: Record store to serve (opened from configured storage at startup if None)
        insights: Insights service (built from configuration at startup if None)
        cfg: Configuration (module-level config if None)
    """
    cfg = cfg or default_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        if app.state.store is None:
            app.state.store = RecordStore.open(
                JsonFileStorage(cfg.storage.path),
                cfg.storage.key,
                seed=cfg.storage.seed_samples
            )
        if app.state.insights is None:
            app.state.insights = InsightsService.from_config(cfg)
        logger.info(f"Dashboard API ready - records={len(app.state.store)}, insights={app.state.insights.configured}")
        yield
        logger.info("Dashboard API shutting down")

    app = FastAPI(title="VoltTrack MIS", version=__version__, lifespan=lifespan)
    app.state.store = store
    app.state.insights = insights

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": str(exc),
                "missing_fields": exc.missing_fields,
                "invalid_fields": exc.invalid_fields,
            }
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": str(exc), "id": exc.record_id}
        )

    @app.exception_handler(ReadOnlyStoreError)
    @app.exception_handler(StorageReadError)
    async def storage_error_handler(request: Request, exc: Exception):
        logger.error(f"Write refused, stored records unreadable - error={exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": str(exc), "retryable": False}
        )

    @app.exception_handler(CollaboratorError)
    async def collaborator_error_handler(request: Request, exc: CollaboratorError):
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": str(exc), "retryable": True}
        )

    @app.get("/health")
    async def health(request: Request):
        store = request.app.state.store
        return {"status": "ok", "records": len(store) if store is not None else 0}

    @app.get("/api/records")
    def list_records(
        request: Request,
        q: str = "",
        record_status: str = Query(default="All", alias="status"),
        comm_from: str = "",
        comm_to: str = "",
        pbg_from: str = "",
        pbg_to: str = "",
    ):
        record_filter = RecordFilter(
            search_text=q,
            status=record_status,
            commissioning_due_from=comm_from,
            commissioning_due_to=comm_to,
            pbg_due_from=pbg_from,
            pbg_due_to=pbg_to,
        )
        records = _store(request).records
        matched = filter_records(records, record_filter)
        today = date.today()
        return {
            "total": len(records),
            "count": len(matched),
            "filters_active": has_active_filters(record_filter),
            "records": [_record_view(r, today) for r in matched],
        }

    @app.get("/api/records/{record_id}")
    def get_record(record_id: str, request: Request):
        record = _store(request).get(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return _record_view(record, date.today())

    @app.post("/api/records", status_code=status.HTTP_201_CREATED)
    def create_record(draft: TransformerDraft, request: Request):
        record = _store(request).create(draft)
        return _record_view(record, date.today())

    @app.put("/api/records/{record_id}")
    def update_record(record_id: str, draft: TransformerDraft, request: Request):
        record = _store(request).update(record_id, draft)
        return _record_view(record, date.today())

    @app.delete("/api/records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_record(record_id: str, request: Request):
        if not _store(request).delete(record_id):
            raise NotFoundError(record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/api/dashboard")
    async def dashboard(request: Request, as_of: Optional[date] = None):
        return build_dashboard(_store(request).records, as_of or date.today())

    @app.post("/api/insights")
    async def generate_insights(request: Request):
        result = await _insights(request).generate_insights(_store(request).records)
        return result.model_dump()

    @app.post("/api/ask")
    async def ask(body: AskRequest, request: Request):
        try:
            answer = await _insights(request).ask(body.question, _store(request).records)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return {"answer": answer}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=default_config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(app, host=default_config.server.host, port=default_config.server.port)
