"""API route handlers."""

from .push import router as push_router, limiter
