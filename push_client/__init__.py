"""
Push Client

Device-side helpers for match notifications: storage, channel token
derivation, the fallback queue and the delivery client.

Usage:
    from push_client import PushDeliveryClient, derive_channel_auth_token
"""

from push_client.storage import KeyValueStorage, MemoryStorage, JsonFileStorage
from push_client.auth import derive_channel_auth_token
from push_client.fallback import (
    FlushResult,
    create_push_event_id,
    get_or_create_push_device_id,
    read_fallback_queue,
    enqueue_fallback_queue_item,
    flush_fallback_queue,
)
from push_client.api import PushApiClient
from push_client.delivery import ClientCapabilities, MatchNotificationInput, PushDeliveryClient

__all__ = [
    # Storage
    'KeyValueStorage',
    'MemoryStorage',
    'JsonFileStorage',
    # Auth
    'derive_channel_auth_token',
    # Fallback queue
    'FlushResult',
    'create_push_event_id',
    'get_or_create_push_device_id',
    'read_fallback_queue',
    'enqueue_fallback_queue_item',
    'flush_fallback_queue',
    # Delivery
    'PushApiClient',
    'ClientCapabilities',
    'MatchNotificationInput',
    'PushDeliveryClient',
]
