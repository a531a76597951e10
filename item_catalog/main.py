from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from item_catalog.db import DEFAULT_CATEGORIES, init_db, seed_categories
from item_catalog.errors import CatalogError
from item_catalog.routes.categories import router as categories_router
from item_catalog.routes.images import router as images_router
from item_catalog.routes.items import router as items_router
from item_catalog.services.images import ImageStore
from item_catalog.services.repository import SqlItemRepository, make_repository
from item_catalog.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def error_envelope(code: str, message: str, request_id: str, details=None):
    return {"error": {"code": code, "message": message, "details": details}, "request_id": request_id}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title=settings.app_name)

    app.state.settings = settings
    app.state.repository = make_repository(settings)
    app.state.image_store = ImageStore(settings.image_dir)

    origins = [o.strip() for o in settings.front_url.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if origins else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex.upper()
        request.state.request_id = rid
        started = time.perf_counter()
        resp = await call_next(request)
        resp.headers["x-request-id"] = rid
        logger.info(
            f"{request.method} {request.url.path} -> {resp.status_code} "
            f"({(time.perf_counter() - started) * 1000:.1f}ms) rid={rid}"
        )
        return resp

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        rid = getattr(request.state, "request_id", uuid.uuid4().hex.upper())
        detail = exc.detail
        if isinstance(detail, dict) and "code" in detail and "message" in detail:
            return JSONResponse(
                status_code=exc.status_code,
                content=error_envelope(detail["code"], detail["message"], rid, detail.get("details")),
            )
        # fallback
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope("HTTP_ERROR", str(detail), rid),
        )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        rid = getattr(request.state, "request_id", uuid.uuid4().hex.upper())
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.code}: {exc.message}", exc_info=exc)
        else:
            logger.warning(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.code, exc.message, rid, exc.details),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        rid = getattr(request.state, "request_id", uuid.uuid4().hex.upper())
        logger.exception(f"unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("INTERNAL_ERROR", f"Unexpected server error: {exc}", rid),
        )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "store": settings.item_store,
            "images": {"status": "ok", "root": str(app.state.image_store.image_dir)},
        }

    @app.on_event("startup")
    def _startup():
        if settings.auto_create_tables and isinstance(app.state.repository, SqlItemRepository):
            init_db(app.state.repository.engine)
            if not settings.auto_create_categories:
                seed_categories(app.state.repository.engine, DEFAULT_CATEGORIES)
        app.state.image_store.ensure_default_image()

    # Routers
    app.include_router(items_router, tags=["items"])
    app.include_router(images_router, tags=["images"])
    app.include_router(categories_router, tags=["categories"])

    return app


# Default-settings app. Building it touches neither disk nor database; that happens at startup.
app = create_app()
