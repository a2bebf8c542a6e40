#!/usr/bin/env python3
"""
League Push API - FastAPI Application

Serves the push endpoints the league app calls after recording a match.

Usage:
    uvicorn web.backend.app:app
    python -m web.backend.app

Then:
    - POST /push/subscribe      register a device
    - POST /push/unsubscribe    remove a device
    - POST /push/notify-match   announce a match to the channel
    - GET  /health              liveness and Redis reachability
"""

import logging

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.app_context import AppContext
from core.logging_config import setup_logging
from push.exceptions import PushError
from .config import get_config
from .dependencies import get_app_context
from .exceptions import (
    validation_exception_handler,
    push_exception_handler,
    http_exception_handler,
    rate_limit_exception_handler,
    general_exception_handler
)
from .routers import push_router, limiter

# Load configuration
config = get_config()

setup_logging(config.logging.level)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="League Push API",
    description="Web Push delivery for recorded league matches",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure rate limiting
app.state.limiter = limiter

# Register exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(PushError, push_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include routers
app.include_router(push_router)


@app.get("/health")
def health_check(context: AppContext = Depends(get_app_context)):
    """Health check endpoint. Reports whether Redis answers a ping."""
    redis_ok = context.store.ping()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "service": "league-push",
        "redis": "connected" if redis_ok else "unreachable"
    }


def main():
    """Run the web server."""
    import uvicorn

    if not config.push.vapid.is_complete:
        logger.warning("VAPID keys are not configured; notify-match requests will fail")

    logger.info(f"Starting League Push API on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level=config.logging.level.lower()
    )


if __name__ == "__main__":
    main()
