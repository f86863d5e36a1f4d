# app/main.py — router mounting, CORS, error envelopes, startup/shutdown

from __future__ import annotations

import logging
import time
import traceback
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.core.errors import AppError
from app.core.settings import settings
from app.database import async_engine
from app.db.ensure_schema import ensure_schema, log_db_time

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(_: FastAPI):
    await log_db_time(async_engine)
    if settings.auto_create_schema:
        await ensure_schema(async_engine)
    log.info("CORS configured for origin(s): %s", ", ".join(settings.cors_origins))
    yield
    log.info("Backend server shutting down...")
    await async_engine.dispose()
    log.info("Database pool has ended")


app = FastAPI(
    title="MyFlix API",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url=None,
    lifespan=lifespan,
)

# ───────────────── CORS ─────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


# ───────────────── Request log ─────────────────
req_log = logging.getLogger("app.requests")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    req_log.info(
        "%s %s -> %s (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


# ───────────────── Error envelopes: {"error": "..."} ─────────────────
@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"error": "Invalid request body. " + "; ".join(problems)})


# ───────────────── Root ─────────────────
@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "MyFlix Backend is alive (see /api/ready for database status)."


# Single API namespace prefix
api = APIRouter(prefix="/api")


def _include(router_import: str, attr: str = "router", *, name_hint: str = "") -> None:
    """
    Import a router lazily and include it.
    If missing/broken, log the FULL traceback so the deploy logs say exactly why.
    """
    label = name_hint or router_import
    try:
        mod = __import__(router_import, fromlist=[attr])
        router = getattr(mod, attr)
        api.include_router(router)
        log.info("Mounted router: %s (prefix=%s)", label, getattr(router, "prefix", ""))
    except Exception as e:
        tb = traceback.format_exc()
        log.error("FAILED to mount router: %s (%s)", label, router_import)
        log.error("Reason: %r", e)
        log.error("Traceback:\n%s", tb)


# ───────────────── Mount routers ─────────────────
_include("app.routes.health", name_hint="health")
_include("app.routes.favorites", name_hint="favorites")
_include("app.routes.watched", name_hint="watched")

# Attach /api router once
app.include_router(api)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
