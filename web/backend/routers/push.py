#!/usr/bin/env python3
"""
Push endpoints - subscribe, unsubscribe and notify-match.

All three accept POST only; any other method answers 405 with
``Allow: POST``. Requests are rate limited per client address.
"""

import logging
from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from push.service import PushService
from ..config import get_config
from ..dependencies import get_push_service
from ..models.requests import NotifyMatchRequest, SubscribeRequest, UnsubscribeRequest
from ..models.responses import NotifyMatchResponse, OkResponse, SubscribeResponse

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/push", tags=["push"])


def push_rate_limit() -> str:
    """Rate limit string for push routes, e.g. ``60/minute``."""
    return get_config().push.rate_limit


@router.post("/subscribe", response_model=SubscribeResponse)
@limiter.limit(push_rate_limit)
def subscribe(
    request: Request,
    body: SubscribeRequest,
    service: PushService = Depends(get_push_service)
):
    """
    Store the device's subscription for the channel.

    The first successful subscribe to a channel establishes its credential.
    """
    subscription_count = service.subscribe(
        channel_id=body.channel_id,
        auth_token=body.auth_token,
        device_id=body.device_id,
        locale=body.locale,
        subscription=body.subscription.model_dump(by_alias=True, exclude_none=True),
    )
    return SubscribeResponse(subscription_count=subscription_count)


@router.post("/unsubscribe", response_model=OkResponse)
@limiter.limit(push_rate_limit)
def unsubscribe(
    request: Request,
    body: UnsubscribeRequest,
    service: PushService = Depends(get_push_service)
):
    """Remove a subscription. Unknown endpoints are not an error."""
    service.unsubscribe(
        channel_id=body.channel_id,
        auth_token=body.auth_token,
        endpoint=body.subscription.endpoint,
    )
    return OkResponse()


@router.post("/notify-match", response_model=NotifyMatchResponse)
@limiter.limit(push_rate_limit)
def notify_match(
    request: Request,
    body: NotifyMatchRequest,
    service: PushService = Depends(get_push_service)
):
    """
    Fan a recorded match out to every subscribed device of the channel.

    Repeated event ids within the dedup window answer ``deduped: true``
    without sending anything.
    """
    outcome = service.notify_match(body)
    if not outcome.deduped:
        result = outcome.result
        logger.info(
            f"notify-match {body.event_id} on {body.channel_id}: "
            f"{result.sent}/{result.attempted} sent, {result.failed} failed, "
            f"{len(result.stale_endpoints)} stale"
        )
    return NotifyMatchResponse.from_outcome(outcome)
