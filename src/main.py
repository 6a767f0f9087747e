"""
Login Gatekeeper

FastAPI application deployed in front of an origin server. Requests for the
login function must carry a time-bounded HMAC proof token bound to the
caller's IP; verified requests are forwarded with the proof stripped from
the query string. All other requests pass through unmodified.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8080 --reload

Or run directly:
    python main.py
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from core.config import get_settings
from core.logger import get_logger, level_name, setup_logging
from gatekeeper.errors import GatekeeperError, TransportError
from routers import gate_router
from services import close_forwarder, get_forwarder

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events for proper resource management.
    """
    settings = get_settings()

    # Setup logging based on settings
    setup_logging(level_name(settings.debug))

    # Startup
    logger.info("=" * 60)
    logger.info("Login Gatekeeper Starting")
    logger.info("=" * 60)
    logger.info(f"Listening on: http://{settings.server_host}:{settings.server_port}")
    logger.info(f"Origin: {settings.origin_url}")
    logger.info(f"Login function: {settings.function_id_param}={settings.login_function_id}")
    logger.info(f"Token validity: {settings.token_validity_seconds}s")
    logger.info(f"Secret: {'Configured' if settings.resolve_secret() else 'MISSING (all requests rejected)'}")
    logger.info(f"Debug: {settings.debug}")
    logger.info("=" * 60)

    get_forwarder()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_forwarder()


# Create FastAPI application
app = FastAPI(
    title="Login Gatekeeper",
    description="""
    HMAC proof-of-possession gate for the login endpoint.

    ## Login requests

    `?function_id=APPS_LOGIN_DEFAULT&oait=<application>++<timestamp>-<digest>[++<access>]`

    - `digest = base64(HMAC-SHA256(secret, "<client_ip>:<timestamp>"))`
    - The client IP comes from `CF-Connecting-IP`, else the first `X-Forwarded-For` entry
    - The origin receives `oait=<application>` only
    - An access token is returned as the `CF_Authorization` cookie

    Any other request is forwarded unchanged.
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


@app.exception_handler(GatekeeperError)
async def gatekeeper_error_handler(request: Request, exc: GatekeeperError) -> HTMLResponse:
    """Turn a rejected request into its fixed public error response."""
    if isinstance(exc, TransportError):
        logger.error(f"{request.method} {request.url.path}: {exc.reason}")
    else:
        logger.warning(f"Rejected {request.method} {request.url.path} ({exc.status_code}): {exc.reason}")
    return HTMLResponse(content=exc.detail, status_code=exc.status_code)


# Include routers
app.include_router(gate_router)


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level=level_name(settings.debug).lower(),
    )
