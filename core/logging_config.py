"""Logging setup shared by the web app, the RQ worker and client tools."""
import logging
import sys
from typing import Union
from urllib.parse import urlparse

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    # Keep uvicorn's loggers in step with ours
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)


def endpoint_host(endpoint: str) -> str:
    """Shorten a push endpoint to its host for logging."""
    try:
        host = urlparse(endpoint).hostname
    except ValueError:
        host = None
    return host or "<endpoint>"
