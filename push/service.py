#!/usr/bin/env python3
"""
Push Service - request orchestration for subscribe, unsubscribe and notify.

Notify-match progresses strictly in this order:

    authorize -> claim event -> list + fan out -> prune stale -> respond

and releases the event claim if listing or sending raises, so the client's
retry is not mistaken for a duplicate.

Usage:
    from core.app_context import AppContext

    service = AppContext.build(config).push_service
    outcome = service.notify_match(event)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from push.auth import ChannelAuthService
from push.dedup import EventDedupGate
from push.exceptions import UnauthorizedChannelError
from push.fanout import FanOutEngine
from push.maintenance import StaleEndpointPruner
from push.message_builder import MatchMessageBuilder
from push.models import FanOutResult, MatchPushEvent
from push.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


@dataclass
class NotifyMatchOutcome:
    deduped: bool
    result: FanOutResult = field(default_factory=FanOutResult)


class PushService:
    """
    Coordinates the push components for each HTTP request.

    Holds no per-request state; every collaborator is injected.
    """

    def __init__(
        self,
        auth: ChannelAuthService,
        registry: SubscriptionRegistry,
        dedup: EventDedupGate,
        fanout: FanOutEngine,
        pruner: StaleEndpointPruner
    ):
        self.auth = auth
        self.registry = registry
        self.dedup = dedup
        self.fanout = fanout
        self.pruner = pruner

    def _authorize(self, channel_id: str, auth_token: str, allow_bootstrap: bool) -> None:
        if not self.auth.verify_channel_auth(channel_id, auth_token, allow_bootstrap=allow_bootstrap):
            raise UnauthorizedChannelError(f"Unauthorized channel {channel_id}")

    def subscribe(
        self,
        channel_id: str,
        auth_token: str,
        device_id: str,
        locale: str,
        subscription: Dict[str, Any]
    ) -> int:
        """
        Register a device subscription. The first subscribe establishes the channel credential.

        Returns:
            Number of subscriptions stored for the channel afterwards
        """
        self._authorize(channel_id, auth_token, allow_bootstrap=True)

        record = self.registry.build_record(
            endpoint=subscription['endpoint'],
            device_id=device_id,
            locale=locale,
            subscription=subscription,
        )
        self.registry.upsert_subscription(channel_id, record)
        return self.registry.count_subscriptions(channel_id)

    def unsubscribe(self, channel_id: str, auth_token: str, endpoint: str) -> None:
        self._authorize(channel_id, auth_token, allow_bootstrap=False)
        self.registry.remove_subscription(channel_id, endpoint)

    def notify_match(self, event: MatchPushEvent) -> NotifyMatchOutcome:
        """
        Announce a recorded match to the channel's devices.

        A notify request can never bootstrap a channel credential.

        Raises:
            UnauthorizedChannelError: Token rejected
        """
        self._authorize(event.channel_id, event.auth_token, allow_bootstrap=False)

        if not self.dedup.mark_event_if_new(event.channel_id, event.event_id):
            return NotifyMatchOutcome(deduped=True)

        try:
            subscriptions = self.registry.list_subscriptions(event.channel_id)
            result = self.fanout.send_match_push(
                subscriptions=subscriptions,
                sender_device_id=event.sender_device_id,
                payload_factory=lambda locale: MatchMessageBuilder.build_payload(event, locale),
            )
        except Exception:
            logger.error(f"Delivery of event {event.event_id} failed; releasing dedup claim")
            self.dedup.clear_event_mark(event.channel_id, event.event_id)
            raise

        self.pruner.prune(event.channel_id, result.stale_endpoints)

        return NotifyMatchOutcome(deduped=False, result=result)
