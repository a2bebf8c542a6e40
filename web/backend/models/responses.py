#!/usr/bin/env python3
"""
Response models for the push API.
"""

from pydantic import ConfigDict

from push.models import CamelModel
from push.service import NotifyMatchOutcome


class OkResponse(CamelModel):
    ok: bool = True


class SubscribeResponse(OkResponse):
    """Subscription stored; reports how many the channel now holds."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"ok": True, "subscriptionCount": 2}
        }
    )

    subscription_count: int


class NotifyMatchResponse(OkResponse):
    """Fan-out counters. A deduped response carries all zeros."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": True,
                "deduped": False,
                "totalSubscriptions": 3,
                "skippedSender": 1,
                "attempted": 2,
                "sent": 1,
                "failed": 1
            }
        }
    )

    deduped: bool = False
    total_subscriptions: int = 0
    skipped_sender: int = 0
    attempted: int = 0
    sent: int = 0
    failed: int = 0

    @classmethod
    def from_outcome(cls, outcome: NotifyMatchOutcome) -> "NotifyMatchResponse":
        result = outcome.result
        return cls(
            deduped=outcome.deduped,
            total_subscriptions=result.total_subscriptions,
            skipped_sender=result.skipped_sender,
            attempted=result.attempted,
            sent=result.sent,
            failed=result.failed,
        )
