"""Channel Store - Redis persistence for push channels.

Holds three kinds of keys per channel:

    push:auth:{channel_id}               auth token hash (string)
    push:subs:{channel_id}               endpoint -> subscription JSON (hash)
    push:event:{channel_id}:{event_id}   dedup marker with TTL (string)

Unlike a cache, every store error propagates to the caller.
"""
import logging
from typing import Dict, Optional
from urllib.parse import urlparse

from redis import Redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "push"


def _sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            sanitized = parsed._replace(
                netloc=f"{parsed.username or ''}:*@{parsed.hostname}:{parsed.port or 6379}"
            )
            return sanitized.geturl()
        return url
    except Exception:
        return url


def create_redis_client(
    redis_url: str,
    password: Optional[str] = None,
    socket_timeout: float = 5.0
) -> Redis:
    """Create the process-wide Redis client used by the store."""
    client = Redis.from_url(
        redis_url,
        password=password,
        decode_responses=True,
        socket_connect_timeout=socket_timeout,
        socket_timeout=socket_timeout
    )
    logger.info(f"Channel store using Redis at {_sanitize_url(redis_url)}")
    return client


class ChannelStore:
    """
    Key-value persistence for auth hashes, subscriptions and dedup markers.

    The Redis client is injected so tests can substitute an in-memory double.
    """

    def __init__(self, redis: Redis):
        self._redis = redis

    @staticmethod
    def auth_key(channel_id: str) -> str:
        return f"{KEY_PREFIX}:auth:{channel_id}"

    @staticmethod
    def subscriptions_key(channel_id: str) -> str:
        return f"{KEY_PREFIX}:subs:{channel_id}"

    @staticmethod
    def event_key(channel_id: str, event_id: str) -> str:
        return f"{KEY_PREFIX}:event:{channel_id}:{event_id}"

    def ping(self) -> bool:
        """Check store connectivity without raising."""
        try:
            return bool(self._redis.ping())
        except Exception as e:
            logger.warning(f"Channel store ping failed: {e}")
            return False

    # ── Channel auth ─────────────────────────────────────────────────────────

    def get_channel_token_hash(self, channel_id: str) -> Optional[str]:
        value = self._redis.get(self.auth_key(channel_id))
        return value or None

    def set_channel_token_hash(self, channel_id: str, token_hash: str) -> None:
        self._redis.set(self.auth_key(channel_id), token_hash)

    # ── Subscriptions ────────────────────────────────────────────────────────

    def get_subscription_fields(self, channel_id: str) -> Dict[str, str]:
        """Return the raw endpoint -> JSON mapping for a channel."""
        return self._redis.hgetall(self.subscriptions_key(channel_id)) or {}

    def put_subscription_field(self, channel_id: str, endpoint: str, raw: str) -> None:
        self._redis.hset(self.subscriptions_key(channel_id), endpoint, raw)

    def delete_subscription_fields(self, channel_id: str, *endpoints: str) -> int:
        if not endpoints:
            return 0
        return int(self._redis.hdel(self.subscriptions_key(channel_id), *endpoints) or 0)

    def count_subscription_fields(self, channel_id: str) -> int:
        count = self._redis.hlen(self.subscriptions_key(channel_id))
        try:
            return int(count)
        except (TypeError, ValueError):
            return 0

    # ── Event markers ────────────────────────────────────────────────────────

    def claim_key(self, channel_id: str, event_id: str, ttl_seconds: int) -> bool:
        """
        Atomically create the event marker if it does not exist.

        Uses a single ``SET key 1 NX EX ttl`` so two concurrent requests for
        the same event can never both succeed.

        Returns:
            True if this call created the marker, False if it already existed
        """
        result = self._redis.set(
            self.event_key(channel_id, event_id),
            "1",
            nx=True,
            ex=ttl_seconds
        )
        return bool(result)

    def release_key(self, channel_id: str, event_id: str) -> None:
        self._redis.delete(self.event_key(channel_id, event_id))
