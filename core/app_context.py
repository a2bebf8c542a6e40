from dataclasses import dataclass
from typing import Optional

from redis import Redis

from core.config_loader import AppConfig
from core.store import ChannelStore, create_redis_client
from push.auth import ChannelAuthService
from push.dedup import EventDedupGate
from push.fanout import FanOutEngine
from push.maintenance import StaleEndpointPruner
from push.registry import SubscriptionRegistry
from push.service import PushService
from push.transport import PushTransport, get_push_transport


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Built once per process; the Redis client and push transport it holds
    are shared by every request.
    """
    config: AppConfig
    redis: Redis
    store: ChannelStore
    transport: PushTransport
    push_service: PushService

    @classmethod
    def build(
        cls,
        config: AppConfig,
        redis: Optional[Redis] = None,
        transport: Optional[PushTransport] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            redis: Pre-built client (tests); created from config.redis otherwise
            transport: Pre-built transport (tests); from config.push.transport otherwise

        Returns:
            Fully wired AppContext instance
        """
        if redis is None:
            redis = create_redis_client(
                config.redis.url,
                password=config.redis.password,
                socket_timeout=config.redis.socket_timeout_seconds
            )
        store = ChannelStore(redis)

        if transport is None:
            transport = get_push_transport(
                config.push.transport,
                timeout_seconds=config.push.send_timeout_seconds
            )

        push_service = cls._build_push_service(config, store, transport)

        return cls(
            config=config,
            redis=redis,
            store=store,
            transport=transport,
            push_service=push_service
        )

    @staticmethod
    def _build_push_service(config: AppConfig, store: ChannelStore, transport: PushTransport) -> PushService:
        push_config = config.push
        registry = SubscriptionRegistry(store)

        pruner = StaleEndpointPruner(
            registry,
            redis_url=config.redis.url if push_config.use_async_queue else None,
            password=config.redis.password,
            use_async_queue=push_config.use_async_queue,
            queue_name=push_config.queue_name
        )

        return PushService(
            auth=ChannelAuthService(store),
            registry=registry,
            dedup=EventDedupGate(store, ttl_seconds=push_config.event_dedup_ttl_seconds),
            fanout=FanOutEngine(transport, push_config.vapid),
            pruner=pruner
        )
