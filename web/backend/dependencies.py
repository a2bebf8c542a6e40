#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

from functools import lru_cache

from core.app_context import AppContext
from push.service import PushService
from .config import get_config


@lru_cache()
def get_app_context() -> AppContext:
    """
    Build the process-wide application context on first use.

    The Redis client inside it is created once and shared by all requests.
    """
    return AppContext.build(get_config())


def get_push_service() -> PushService:
    """
    FastAPI dependency that returns the wired push service.

    Usage:
        @router.post("/endpoint")
        def my_endpoint(service: PushService = Depends(get_push_service)):
            ...
    """
    return get_app_context().push_service
