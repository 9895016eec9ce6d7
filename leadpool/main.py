import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from leadpool.api.v1.router import router as api_v1_router
from leadpool.core.config import settings as app_settings
from leadpool.core.database import AsyncSessionLocal
from leadpool.core.exceptions import (
    DataIntegrityError,
    InvalidActorError,
    InvalidTransitionError,
    RecordNotFoundError,
    UnauthorizedTransitionError,
)
from leadpool.services.auto_unassign import start_auto_unassign_loop

# Configure logging
logging.basicConfig(level=getattr(logging, app_settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application-level background tasks."""
    sweep_task = None
    if app_settings.UNASSIGN_SWEEP_ENABLED:
        # Start the assignment-window sweeper
        sweep_task = asyncio.create_task(start_auto_unassign_loop(AsyncSessionLocal))
        logger.info("Background auto-unassignment task scheduled")
    yield
    # Shutdown: cancel the background task
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            logger.info("Background auto-unassignment task stopped")


app = FastAPI(
    title="Lead Pool Engine",
    description="Category pools, visibility and recycle-bin lifecycle for companies and shared leads",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware, restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    logger.warning("Record not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "record_not_found"},
    )


@app.exception_handler(DataIntegrityError)
async def data_integrity_handler(request: Request, exc: DataIntegrityError):
    logger.warning("Data integrity violation on %s: %s", exc.record_id, exc.detail)
    return JSONResponse(
        status_code=422,
        content={
            "detail": exc.detail,
            "record_id": exc.record_id,
            "type": "data_integrity",
        },
    )


@app.exception_handler(UnauthorizedTransitionError)
async def unauthorized_transition_handler(
    request: Request, exc: UnauthorizedTransitionError
):
    logger.warning("Unauthorized transition: %s", exc.detail)
    return JSONResponse(
        status_code=403,
        content={"detail": exc.detail, "type": "unauthorized_transition"},
    )


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    logger.warning("Invalid transition: %s", exc.detail)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.detail, "type": "invalid_transition"},
    )


@app.exception_handler(InvalidActorError)
async def invalid_actor_handler(request: Request, exc: InvalidActorError):
    logger.warning("Invalid actor context: %s", exc.detail)
    return JSONResponse(
        status_code=400,
        content={"detail": exc.detail, "type": "invalid_actor"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": exc.errors(),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
