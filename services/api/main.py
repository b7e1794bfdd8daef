"""
Product Sheet API: product families, schematic markers, technical
variables and per-family option catalogs on SQLite (SQLAlchemy Core).

Install:
  pip install -e ".[test]"

Run (from services/api):
  uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from typing import Optional
import logging
import os
import time
import uuid

from settings import get_settings
from adapters.base import StorageAdapter
from adapters.sqlite import SqliteAdapter
from core.observability import configure_logging, request_id_var, stats

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

VERSION = "1.0"
BACKEND = "sqlite"
UPLOAD_URL_PREFIX = "/uploads/familias-produtos"

storage_adapter = SqliteAdapter.from_url(settings.db_url)
logger.info(f"Storage: {settings.db_url.split('://')[0]}")


def get_storage_adapter(_=None) -> StorageAdapter:
    """DI hook for routers/*. Tests swap `storage_adapter` on this module."""
    return storage_adapter


app = FastAPI(
    title="Product Sheet API",
    description="Product families, schematic markers, technical variables and per-family options",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    """Tag the request with an id (kept if the caller sent one), time it, count it per route."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    request_id_var.set(request_id)
    started = time.perf_counter()

    response = await call_next(request)

    latency = time.perf_counter() - started
    route = request.scope.get("route")
    endpoint = f"{request.method} {getattr(route, 'path', request.url.path)}"
    logger.info(f"{endpoint} -> {response.status_code} ({latency * 1000:.1f} ms)")
    stats.record_request(endpoint, response.status_code, latency)

    response.headers["X-Request-ID"] = request_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Uploaded family photos / schematics
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


# ---------------- Service endpoints ----------------

def _storage_error() -> Optional[str]:
    """None when the database answers, else the driver's message."""
    try:
        get_storage_adapter().ping()
    except Exception as e:
        logger.error(f"Storage ping failed: {e}")
        return str(e)
    return None


@app.get("/health")
async def health_check():
    error = _storage_error()
    if error:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "backend": BACKEND, "error": error},
        )
    return {"status": "healthy", "backend": BACKEND, "version": VERSION}


@app.get("/healthz")
async def healthz():
    """Liveness: the process answers, storage is not checked."""
    return {"status": "ok", "timestamp": time.time(), "version": VERSION}


@app.get("/readyz")
async def readyz():
    """Readiness: 200 once the database answers, 503 otherwise."""
    from routers.variables import variable_cache

    error = _storage_error()
    body = {"backend": BACKEND, "timestamp": time.time()}
    if error:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "error": error, **body},
        )
    return {"status": "ready", "variables_cached": len(variable_cache), **body}


@app.get("/metrics")
async def get_metrics():
    from routers.variables import variable_cache
    return stats.snapshot(cache_size=len(variable_cache))


@app.get("/")
async def root():
    return {"message": "Product Sheet API", "version": VERSION, "backend": BACKEND, "docs": "/docs"}


from routers import variables as variables_router
from routers import families as families_router
from routers import options as options_router

app.include_router(variables_router.router)
app.include_router(families_router.router)
app.include_router(options_router.router)


@app.on_event("startup")
async def startup_event():
    stats.started_at = time.time()
    logger.info("Product Sheet API starting up...")
    logger.info(f"Database: {settings.db_url.split('://')[0]}, uploads: {settings.upload_dir}")
    logger.info(f"Allowed origins: {settings.get_origins_list()}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Product Sheet API shutting down...")
    storage_adapter.engine.dispose()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
