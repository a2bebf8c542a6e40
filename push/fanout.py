#!/usr/bin/env python3
"""
Notification Fan-out Engine

Sends one payload per distinct device of a channel and reports what
happened. Push delivery fails per subscriber (different browsers and push
services fail independently), so individual failures are counted, never
raised; endpoints the push service reports as gone (404/410) are returned
for pruning.

Sender rule: when only one device is subscribed it receives its own
notification, so single-device setups can verify delivery end to end.
Once a second device exists the sender is skipped.
"""

import logging
from typing import Callable, Dict, Iterable, List

from core.config_loader import VapidConfig
from core.logging_config import endpoint_host
from push.exceptions import PushConfigurationError, PushDeliveryError
from push.models import FanOutResult, MatchPushPayload, PushSubscriptionRecord
from push.transport import PushTransport

logger = logging.getLogger(__name__)

PayloadFactory = Callable[[str], MatchPushPayload]


def latest_by_device(subscriptions: Iterable[PushSubscriptionRecord]) -> List[PushSubscriptionRecord]:
    """
    Keep only the most recently updated record per device.

    ``updated_at`` values are ISO-8601 UTC strings, so string order is time
    order. On a tie the first record seen wins.
    """
    latest: Dict[str, PushSubscriptionRecord] = {}
    for record in subscriptions:
        existing = latest.get(record.device_id)
        if existing is None or record.updated_at > existing.updated_at:
            latest[record.device_id] = record
    return list(latest.values())


class FanOutEngine:

    def __init__(self, transport: PushTransport, vapid: VapidConfig):
        self.transport = transport
        self.vapid = vapid

    def _configure_transport(self) -> None:
        if not self.vapid.is_complete:
            raise PushConfigurationError("Missing VAPID configuration.")
        self.transport.configure(self.vapid.subject, self.vapid.public_key, self.vapid.private_key)

    def send_match_push(
        self,
        subscriptions: Iterable[PushSubscriptionRecord],
        sender_device_id: str,
        payload_factory: PayloadFactory
    ) -> FanOutResult:
        """
        Fan a notification out to a channel's devices.

        Args:
            subscriptions: Current subscription records of the channel
            sender_device_id: Device that triggered the event
            payload_factory: Builds the payload for a subscriber's locale

        Returns:
            FanOutResult with counts and stale endpoints

        Raises:
            PushConfigurationError: VAPID credentials are missing
        """
        self._configure_transport()

        devices = latest_by_device(subscriptions)
        result = FanOutResult(total_subscriptions=len(devices))

        skip_sender = len(devices) > 1

        for record in devices:
            if skip_sender and record.device_id == sender_device_id:
                result.skipped_sender += 1
                continue

            result.attempted += 1

            try:
                payload = payload_factory(record.locale)
                self.transport.send(record.subscription, payload.model_dump_json(by_alias=True))
                result.sent += 1
            except PushDeliveryError as e:
                result.failed += 1
                if e.is_gone:
                    logger.info(f"Endpoint gone ({e.status_code}): {endpoint_host(record.endpoint)}")
                    result.stale_endpoints.append(record.endpoint)
                else:
                    logger.warning(f"Push to device {record.device_id} failed: {e}")
            except PushConfigurationError:
                raise
            except Exception as e:
                result.failed += 1
                logger.error(f"Unexpected error pushing to device {record.device_id}: {e}", exc_info=True)

        logger.info(
            f"Fan-out complete: {result.sent} sent, {result.failed} failed, "
            f"{result.skipped_sender} sender skipped, {len(result.stale_endpoints)} stale"
        )
        return result
