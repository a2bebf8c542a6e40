"""Store Module - Redis persistence for push channels."""
from core.store.channel_store import (
    ChannelStore,
    create_redis_client,
)

__all__ = [
    'ChannelStore',
    'create_redis_client',
]
