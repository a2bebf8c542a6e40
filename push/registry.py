"""
Subscription Registry - per-device push subscriptions of a channel.

Browsers may hand out a new endpoint when a device re-subscribes, so an
upsert supersedes every other endpoint stored for the same device.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from core.logging_config import endpoint_host
from core.store import ChannelStore
from push.models import PushSubscriptionRecord

logger = logging.getLogger(__name__)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_subscription_record(raw: Any) -> Optional[PushSubscriptionRecord]:
    """Parse a stored value, returning None for anything malformed."""
    try:
        if isinstance(raw, (str, bytes)):
            return PushSubscriptionRecord.model_validate_json(raw)
        if isinstance(raw, dict):
            return PushSubscriptionRecord.model_validate(raw)
    except ValidationError:
        return None
    return None


class SubscriptionRegistry:

    def __init__(self, store: ChannelStore):
        self.store = store

    @staticmethod
    def build_record(
        endpoint: str,
        device_id: str,
        locale: str,
        subscription: Dict[str, Any],
        now: Optional[datetime] = None
    ) -> PushSubscriptionRecord:
        return PushSubscriptionRecord(
            endpoint=endpoint,
            device_id=device_id,
            locale=locale,
            updated_at=utc_timestamp(now),
            subscription=subscription,
        )

    def upsert_subscription(self, channel_id: str, record: PushSubscriptionRecord) -> None:
        """
        Store ``record`` under its endpoint, removing the device's older endpoints.

        After this call the device contributes exactly one entry.
        """
        existing = self.store.get_subscription_fields(channel_id)

        superseded = []
        for endpoint, raw in existing.items():
            if endpoint == record.endpoint:
                continue
            parsed = parse_subscription_record(raw)
            if parsed and parsed.device_id == record.device_id:
                superseded.append(endpoint)

        if superseded:
            self.store.delete_subscription_fields(channel_id, *superseded)
            logger.info(
                f"Superseded {len(superseded)} endpoint(s) of device {record.device_id} "
                f"in channel {channel_id}"
            )

        self.store.put_subscription_field(
            channel_id,
            record.endpoint,
            record.model_dump_json(by_alias=True)
        )
        logger.info(f"Stored subscription for device {record.device_id} via {endpoint_host(record.endpoint)}")

    def remove_subscription(self, channel_id: str, endpoint: str) -> None:
        """Remove an endpoint. Removing an unknown endpoint is not an error."""
        removed = self.store.delete_subscription_fields(channel_id, endpoint)
        if removed:
            logger.info(f"Removed subscription {endpoint_host(endpoint)} from channel {channel_id}")

    def list_subscriptions(self, channel_id: str) -> List[PushSubscriptionRecord]:
        records = []
        for endpoint, raw in self.store.get_subscription_fields(channel_id).items():
            parsed = parse_subscription_record(raw)
            if parsed is None:
                logger.debug(f"Skipping malformed subscription entry {endpoint_host(endpoint)}")
                continue
            records.append(parsed)
        return records

    def count_subscriptions(self, channel_id: str) -> int:
        return self.store.count_subscription_fields(channel_id)
