#!/usr/bin/env python3
"""
RQ Worker for stale endpoint pruning.

Drains the queue that StaleEndpointPruner fills when ``push.use_async_queue``
is enabled. Jobs load their config from ``CONFIG_PATH``; ``--config`` sets it
for the worker and every job it forks.

Usage:
    uv run python -m push.worker
    uv run python -m push.worker --burst
    uv run python -m push.worker --config /etc/league-push/config.yaml --verbose
"""

import os
import sys
import argparse
import logging
from typing import List, Optional

from rq import Worker

from core.config_loader import AppConfig, load_config
from core.logging_config import setup_logging
from push.maintenance import queue_connection

logger = logging.getLogger(__name__)


def build_worker(config: AppConfig, queues: Optional[List[str]] = None) -> Worker:
    """
    Connect to the configured Redis and create a worker for ``queues``.

    Raises:
        redis.exceptions.RedisError: If Redis is unreachable
    """
    if queues is None:
        queues = [config.push.queue_name]

    if not config.push.use_async_queue:
        logger.warning("push.use_async_queue is disabled; the web app prunes inline and queues stay empty")

    redis_conn = queue_connection(config.redis.url, password=config.redis.password)
    redis_conn.ping()
    logger.info("Connected to Redis")

    return Worker(queues, connection=redis_conn)


def start_worker(config: AppConfig, burst: bool = False, queues: Optional[List[str]] = None) -> int:
    """Run the worker until stopped. Returns the process exit code."""
    try:
        worker = build_worker(config, queues)
    except Exception as e:
        logger.error(f"Cannot start worker: {e}")
        return 1

    logger.info(f"Listening on {', '.join(q.name for q in worker.queues)} (burst={burst})")

    try:
        worker.work(burst=burst)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='League push maintenance worker')
    parser.add_argument('--config', default=None, help='Config file (default: $CONFIG_PATH or config.yaml)')
    parser.add_argument('--burst', action='store_true', help='Process all and exit')
    parser.add_argument('--queues', nargs='+', default=None)
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args(argv)

    if args.config:
        os.environ['CONFIG_PATH'] = args.config
    config = load_config(os.environ.get('CONFIG_PATH', 'config.yaml'))

    setup_logging(logging.DEBUG if args.verbose else config.logging.level)

    return start_worker(config, burst=args.burst, queues=args.queues)


if __name__ == '__main__':
    sys.exit(main())
