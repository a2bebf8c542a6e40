#!/usr/bin/env python3
"""
Stale endpoint pruning.

Endpoints reported gone by the push service are removed best-effort: a
failed removal is logged and skipped, never surfaced to the caller. With
``push.use_async_queue`` enabled the removals run on an RQ worker
(``python -m push.worker``); otherwise, or when Redis refuses the queue
connection, they run inline.
"""

import logging
import os
from typing import Iterable, List, Optional

from redis import Redis
from rq import Queue

from push.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


def queue_connection(redis_url: str, password: Optional[str] = None) -> Redis:
    """Redis connection for RQ. Not decoded: RQ stores pickled job data."""
    return Redis.from_url(redis_url, password=password)


def remove_endpoints(registry: SubscriptionRegistry, channel_id: str, endpoints: Iterable[str]) -> int:
    """Remove each endpoint, tolerating individual failures. Returns the number removed."""
    removed = 0
    for endpoint in endpoints:
        try:
            registry.remove_subscription(channel_id, endpoint)
            removed += 1
        except Exception as e:
            logger.warning(f"Failed to prune stale endpoint in channel {channel_id}: {e}")
    return removed


class StaleEndpointPruner:

    def __init__(
        self,
        registry: SubscriptionRegistry,
        redis_url: Optional[str] = None,
        password: Optional[str] = None,
        use_async_queue: bool = False,
        queue_name: str = 'push-maintenance'
    ):
        """
        Initialize the pruner.

        Args:
            registry: Registry used for inline removals
            redis_url: Redis URL for the RQ queue (RQ needs its own binary-safe connection)
            password: Redis password, if the server requires one
            use_async_queue: Enqueue removals instead of running them inline
            queue_name: RQ queue name
        """
        self.registry = registry
        self.queue: Optional[Queue] = None
        self.async_mode = False

        if not use_async_queue:
            return

        if not redis_url:
            logger.warning("Async pruning requested without a Redis URL. Using sync mode.")
            return

        try:
            redis_conn = queue_connection(redis_url, password=password)
            redis_conn.ping()
            self.queue = Queue(queue_name, connection=redis_conn)
            self.async_mode = True
            logger.info(f"Stale endpoint pruning queued on '{queue_name}'")
        except Exception as e:
            logger.error(f"Redis queue connection failed: {e}. Falling back to sync mode.")

    def prune(self, channel_id: str, endpoints: Iterable[str]) -> None:
        endpoints = list(endpoints)
        if not endpoints:
            return

        if self.async_mode:
            try:
                job = self.queue.enqueue(
                    prune_stale_endpoints_task,
                    channel_id,
                    endpoints,
                    job_timeout='1m',
                    result_ttl=3600
                )
                logger.info(f"Queued pruning of {len(endpoints)} endpoint(s) as job {job.id}")
                return
            except Exception as e:
                logger.error(f"Failed to enqueue pruning job: {e}. Pruning inline.")

        remove_endpoints(self.registry, channel_id, endpoints)


# Worker task - must be at module level for RQ
def prune_stale_endpoints_task(channel_id: str, endpoints: List[str]) -> int:
    """Remove stale endpoints (called by the RQ worker)."""
    from core.config_loader import load_config
    from core.store import ChannelStore, create_redis_client

    config = load_config(os.environ.get('CONFIG_PATH', 'config.yaml'))
    redis = create_redis_client(
        config.redis.url,
        password=config.redis.password,
        socket_timeout=config.redis.socket_timeout_seconds
    )
    try:
        registry = SubscriptionRegistry(ChannelStore(redis))
        removed = remove_endpoints(registry, channel_id, endpoints)
    finally:
        redis.close()

    logger.info(f"Pruned {removed}/{len(endpoints)} stale endpoint(s) from channel {channel_id}")
    return removed
