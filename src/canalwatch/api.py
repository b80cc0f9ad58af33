"""
Read-only JSON API for the canal dashboard.

    GET /api/data                 latest reading per location
    GET /api/data/{location}      latest reading for one location
    GET /api/history/{location}   readings since now - ?hours=N, oldest first
    GET /api/status               system-wide safety summary
    GET /api/health               liveness
    GET /api/debug                store diagnostics

Every response disables caching. When a static directory is configured and
exists, the browser dashboard is served from ``/``.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import Settings
from .exceptions import StoreQueryError, StoreUnavailableError
from .fetch import fetch_history, fetch_latest_reading
from .models import format_timestamp, normalize_reading
from .query import CountQuery, DistinctLocationsQuery, ReadingQuery
from .status import fetch_all_latest, get_system_status
from .store import ReadingStore, create_store

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def get_store(request: Request) -> Optional[ReadingStore]:
    return request.app.state.store


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ReadingStore] = None,
) -> FastAPI:
    """
    Create the dashboard API application.

    Args:
        settings: Deployment settings (default: read from the environment)
        store: Reading store to serve from. When omitted, one is created from
            ``settings`` at startup and closed at shutdown; if that fails the
            API keeps running and reports the store as unavailable.

    Returns:
        FastAPI application
    """
    if settings is None:
        settings = Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        created = None
        if app.state.store is None:
            try:
                created = app.state.store = create_store(settings)
            except StoreUnavailableError as e:
                app.state.store_error = str(e)
        try:
            yield
        finally:
            if created is not None:
                await created.close()

    app = FastAPI(title="Canal Watch", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.store_error = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def disable_caching(request: Request, call_next: Any) -> Any:
        response = await call_next(request)
        response.headers.update(NO_CACHE_HEADERS)
        return response

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error(f"{request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Store not initialized",
                "detail": request.app.state.store_error or str(exc),
            },
        )

    @app.get("/api/data")
    async def latest_all(
        store: Optional[ReadingStore] = Depends(get_store),
    ) -> Dict[str, Any]:
        readings = await fetch_all_latest(store)
        return {key: reading.to_dict() for key, reading in readings.items()}

    @app.get("/api/data/{location}")
    async def latest_one(
        location: str, store: Optional[ReadingStore] = Depends(get_store)
    ) -> Any:
        reading = await fetch_latest_reading(location, store)
        if reading is None:
            return JSONResponse(status_code=404, content={"error": "No data for location"})
        return reading.to_dict()

    @app.get("/api/history/{location}")
    async def history(
        location: str,
        hours: Optional[str] = None,
        store: Optional[ReadingStore] = Depends(get_store),
    ) -> List[Dict[str, Any]]:
        readings = await fetch_history(location, hours, store=store)
        return [reading.to_dict() for reading in readings]

    @app.get("/api/status")
    async def system_status(
        store: Optional[ReadingStore] = Depends(get_store),
    ) -> Dict[str, Any]:
        summary = await get_system_status(store)
        return summary.to_dict()

    @app.get("/api/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": format_timestamp(datetime.now(timezone.utc)),
        }

    @app.get("/api/debug")
    async def debug(store: Optional[ReadingStore] = Depends(get_store)) -> Any:
        connection = {
            "endpoint": "Set" if settings.cosmos_endpoint else "Missing",
            "database": settings.database,
            "container": settings.container,
        }
        if store is None:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Store not initialized",
                    "detail": app.state.store_error,
                    **connection,
                },
            )

        try:
            locations = await store.query(DistinctLocationsQuery())
            latest_documents = {}
            for name in locations:
                if name is None:
                    continue
                records = await store.query(ReadingQuery.latest(name))
                if records:
                    normalized = normalize_reading(records[0])
                    latest_documents[name] = {
                        "raw": records[0],
                        "normalized": normalized.to_dict() if normalized else None,
                    }
            count = await store.query(CountQuery())
        except StoreQueryError as e:
            logger.error(f"Diagnostics query failed: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})

        return {
            "connected": True,
            **connection,
            "totalDocuments": count[0] if count else 0,
            "availableLocations": locations,
            "latestDocuments": latest_documents,
        }

    static_dir = settings.static_dir
    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="dashboard")

    return app
