from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import PortalError, StorageError
from app.api.routes.health import router as health_router
from app.api.routes.auth import router as auth_router
from app.api.routes.catalog import router as catalog_router
from app.api.routes.quiz import router as quiz_router
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.infra.remote_store import close_remote_client
from app.infra.sql_store import SqlAlchemyAdapter
from app.infra.storage_gateway import StorageGateway
from app.schemas.common import envelope
from app.services.catalog_service import seed_demo_catalog


logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = req_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = req_id
    return response


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    message = exc.message
    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        message = exc.public_message
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(_request_id(request), error={"code": exc.code, "message": message}),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        code = str(detail.get("code") or "HTTP_ERROR")
        message = detail.get("message") or str(detail)
        error = {"code": code, "message": message, "details": detail}
    else:
        error = {"code": "HTTP_ERROR", "message": str(detail)}

    return JSONResponse(status_code=exc.status_code, content=envelope(_request_id(request), error=error))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=envelope(
            _request_id(request),
            error={
                "code": "VALIDATION_ERROR",
                "message": "Invalid request",
                "details": {"errors": [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in exc.errors()]},
            },
        ),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=envelope(_request_id(request), error={"code": "INTERNAL_ERROR", "message": str(exc)}),
    )


@app.on_event("startup")
def bootstrap_catalog():
    """Create embedded tables and seed the demo catalog (safe to run repeatedly)."""
    Base.metadata.create_all(bind=engine)
    if settings.QUIZ_STORE == "remote":
        settings.require_remote()
    if not settings.SEED_DEMO_CATALOG:
        return
    db = SessionLocal()
    try:
        local = SqlAlchemyAdapter(db)
        seed_demo_catalog(StorageGateway.from_stores(catalog=local, quiz=local))
    finally:
        db.close()


@app.on_event("shutdown")
def release_clients():
    close_remote_client()


app.include_router(health_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(catalog_router, prefix="/api")
app.include_router(quiz_router, prefix="/api")

if settings.FRONTEND_DIST_DIR and Path(settings.FRONTEND_DIST_DIR).is_dir():
    app.mount("/", StaticFiles(directory=settings.FRONTEND_DIST_DIR, html=True), name="frontend")
