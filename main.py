# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Bus Roster Service
==================
Assigns event participants to buses. Admins manage everything; controllers
work the roster of the bus they are bound to.

The participant snapshot comes from a spreadsheet CSV export, or from
generated demo fixtures when no spreadsheet is configured.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roster.controllers import admin_controller, auth_controller, roster_controller, system_controller
from roster.core.config import settings
from roster.core.dependencies import get_controller_service, get_sync_service
from roster.core.logging import get_logger
from roster.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Seed accounts and load the first roster snapshot."""
    logger.info("%s v%s starting", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    if settings.SEED_DEFAULT_USERS:
        get_controller_service().seed_defaults()
    await run_in_threadpool(get_sync_service().initial_load)
    yield
    logger.info("%s shutting down", settings.SERVICE_NAME)


app = FastAPI(
    title="Bus Roster Service",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(system_controller.router)
app.include_router(auth_controller.router)
app.include_router(roster_controller.router)
app.include_router(admin_controller.router)


# ── Global exception handler ──
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
