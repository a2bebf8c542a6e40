#!/usr/bin/env python3
"""
Push Delivery Client - the device side of match notifications.

Keeps the device id and the enabled preference in local storage, registers
the device's push subscription, and sends match events with a local
fallback queue when the server cannot be reached.

Usage:
    from push_client import PushDeliveryClient, PushApiClient, JsonFileStorage, ClientCapabilities

    client = PushDeliveryClient(
        api=PushApiClient("https://league.example.com/api"),
        storage=JsonFileStorage("~/.league/push.json"),
        capabilities=ClientCapabilities(service_worker=True, push_manager=True, notification=True),
        channel_id="owner-1",
        mnemonic="correct horse battery staple",
        locale="cs",
    )
    client.enable_notifications(subscription_json)
    client.enqueue_match_notification(MatchNotificationInput(...))
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from push.models import MatchPushEvent
from push_client.api import PushApiClient
from push_client.auth import derive_channel_auth_token
from push_client.fallback import (
    FlushResult,
    create_push_event_id,
    enqueue_fallback_queue_item,
    flush_fallback_queue,
    get_or_create_push_device_id,
)
from push_client.storage import KeyValueStorage

logger = logging.getLogger(__name__)

PUSH_ENABLED_STORAGE_KEY = "push-notifications-enabled-v1"


@dataclass
class ClientCapabilities:
    """Platform features available to the client."""
    service_worker: bool = False
    push_manager: bool = False
    notification: bool = False
    sync_manager: bool = False

    def is_push_supported(self) -> bool:
        return self.service_worker and self.push_manager and self.notification

    def has_background_sync_support(self) -> bool:
        return self.service_worker and self.sync_manager


@dataclass
class MatchNotificationInput:
    """Match details supplied by the caller when a match is recorded."""
    played_at: str
    player_a_name: str
    player_b_name: str
    winner_name: str
    player_a_rating: Optional[Union[int, float]] = None
    player_b_rating: Optional[Union[int, float]] = None
    player_a_rank: Optional[int] = None
    player_b_rank: Optional[int] = None


@dataclass
class _ChannelContext:
    channel_id: str
    auth_token: str
    device_id: str
    locale: str


class PushDeliveryClient:
    """
    Client-side delivery helper.

    Operations that need the channel return False when the channel id or
    the mnemonic is missing, or when the platform does not support push.
    """

    def __init__(
        self,
        api: PushApiClient,
        storage: KeyValueStorage,
        capabilities: ClientCapabilities,
        channel_id: Optional[str] = None,
        mnemonic: Optional[str] = None,
        locale: str = "en"
    ):
        self.api = api
        self.storage = storage
        self.capabilities = capabilities
        self.channel_id = channel_id
        self.auth_token = derive_channel_auth_token(mnemonic) if mnemonic else None
        self.locale = locale or "en"

    @property
    def is_supported(self) -> bool:
        return self.capabilities.is_push_supported()

    @property
    def has_background_sync(self) -> bool:
        return self.capabilities.has_background_sync_support()

    @property
    def is_enabled(self) -> bool:
        return self.storage.get_item(PUSH_ENABLED_STORAGE_KEY) == "1"

    def _write_enabled_preference(self, enabled: bool) -> None:
        self.storage.set_item(PUSH_ENABLED_STORAGE_KEY, "1" if enabled else "0")

    def _context(self) -> Optional[_ChannelContext]:
        if not self.channel_id or not self.auth_token:
            return None
        return _ChannelContext(
            channel_id=self.channel_id,
            auth_token=self.auth_token,
            device_id=get_or_create_push_device_id(self.storage),
            locale=self.locale,
        )

    def _send_event(self, event: Union[MatchPushEvent, Dict[str, Any]]) -> bool:
        return self.api.notify_match_push(event)

    def enable_notifications(self, subscription: Dict[str, Any]) -> bool:
        """
        Register the device's push subscription and remember that push is on.

        Args:
            subscription: ``PushSubscription.toJSON()`` of this device

        Returns:
            True if the server stored the subscription
        """
        if not self.is_supported:
            return False

        context = self._context()
        if context is None:
            return False

        ok = self.api.subscribe_push(
            channel_id=context.channel_id,
            auth_token=context.auth_token,
            device_id=context.device_id,
            locale=context.locale,
            subscription=subscription,
        )
        if not ok:
            logger.error("Failed to register push subscription")
            return False

        self._write_enabled_preference(True)
        return True

    def disable_notifications(self, subscription: Optional[Dict[str, Any]] = None) -> bool:
        """
        Unregister the device and remember that push is off.

        With no current subscription only the preference is cleared. The
        server's answer to unsubscribe does not block disabling locally.
        """
        if not self.is_supported:
            return False

        context = self._context()
        if context is None:
            return False

        if subscription is not None:
            if not self.api.unsubscribe_push(
                channel_id=context.channel_id,
                auth_token=context.auth_token,
                subscription=subscription,
            ):
                logger.warning("Server did not confirm unsubscribe; disabling locally anyway")

        self._write_enabled_preference(False)
        return True

    def re_subscribe(self, subscription: Dict[str, Any]) -> bool:
        if not self.disable_notifications(subscription):
            return False
        return self.enable_notifications(subscription)

    def enqueue_match_notification(self, match: MatchNotificationInput) -> bool:
        """
        Announce a recorded match to the channel's other devices.

        The event gets a fresh id and is sent right away. If that fails and
        the platform has no background sync, it is queued for a later flush.

        Returns:
            Whether the direct send succeeded
        """
        if not self.is_supported or not self.is_enabled:
            return False

        context = self._context()
        if context is None:
            return False

        event = MatchPushEvent(
            channel_id=context.channel_id,
            auth_token=context.auth_token,
            sender_device_id=context.device_id,
            locale=context.locale,
            event_id=create_push_event_id(),
            played_at=match.played_at,
            player_a_name=match.player_a_name,
            player_b_name=match.player_b_name,
            winner_name=match.winner_name,
            player_a_rating=match.player_a_rating,
            player_b_rating=match.player_b_rating,
            player_a_rank=match.player_a_rank,
            player_b_rank=match.player_b_rank,
        )

        if self._send_event(event):
            return True

        if not self.has_background_sync:
            enqueue_fallback_queue_item(self.storage, event)
            logger.info(f"Queued match event {event.event_id} for retry")

        return False

    def flush_fallback(self) -> Optional[FlushResult]:
        """Retry queued events. Returns None when flushing does not apply."""
        if not self.is_supported or not self.is_enabled:
            return None
        if self.has_background_sync:
            return None

        return flush_fallback_queue(self.storage, self._send_event)

    def start(self) -> Optional[FlushResult]:
        """Call once at application start."""
        return self.flush_fallback()

    def on_online(self) -> Optional[FlushResult]:
        """Call when connectivity comes back."""
        return self.flush_fallback()
