"""
Client File Manager - Backend API
FastAPI service for client files, projects, view shares and PDF exports.

Install:
pip install -e ".[test]"

Run from services/api:
uvicorn main:app --reload --port 8000
"""

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import contextvars
import logging
import os
import time
import uuid

from core.errors import friendly_message
from schemas import HealthCheck
from settings import get_settings

# Request id of the request being handled, for log lines outside the middleware
request_id_var = contextvars.ContextVar('request_id', default="-")

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

STORAGE_BACKEND = settings.storage_backend.lower()
ALLOWED_ORIGINS = settings.get_origins_list()

# ---------- storage adapter ----------

storage_adapter = None


def _create_storage_adapter():
    if STORAGE_BACKEND == "json":
        from adapters.json import JsonAdapter

        logger.info(f"Using JSON store in '{settings.data_dir}'")
        return JsonAdapter(data_dir=settings.data_dir)
    raise ValueError(f"Unknown STORAGE_BACKEND: {STORAGE_BACKEND}")


def get_storage_adapter():
    """Adapter used by routers/*; created on first use so tests can swap it first."""
    global storage_adapter
    if storage_adapter is None:
        storage_adapter = _create_storage_adapter()
    return storage_adapter


# ---------- app ----------

app = FastAPI(
    title="Client File Manager API",
    description="Client files, projects, secure view shares and PDF exports",
    version="1.0",
)


@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Tag each request with a short id and log its status and latency."""
    request_id = uuid.uuid4().hex[:8]
    request_id_var.set(request_id)
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms} ms)"
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # browsers need this to read the PDF download name
    expose_headers=["Content-Disposition", "X-Request-ID"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(
        f"[{request_id_var.get()}] Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": friendly_message(exc)},
    )


@app.get("/health", response_model=HealthCheck)
async def health_check():
    try:
        get_storage_adapter()
    except Exception as e:
        logger.error(f"Storage unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=friendly_message(e),
        )
    return HealthCheck(ok=True, backend=STORAGE_BACKEND)


from routers import files as files_router
from routers import identifiers as identifiers_router
from routers import reports as reports_router
from routers import storage as storage_router
from routers import view_shares as view_shares_router

app.include_router(files_router.router)
app.include_router(identifiers_router.router)
app.include_router(storage_router.router)
app.include_router(view_shares_router.router)
app.include_router(reports_router.router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Client File Manager API starting (storage={STORAGE_BACKEND}, origins={ALLOWED_ORIGINS})")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=False)
