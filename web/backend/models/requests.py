#!/usr/bin/env python3
"""
Request models for the push API.

Bodies use camelCase keys. Any field that is missing, blank or of the wrong
type turns into a 400 InvalidBody response before a handler runs.
"""

from push.models import CamelModel, MatchPushEvent, NonEmptyStr, PushSubscriptionShape


class SubscribeRequest(CamelModel):
    """Register the calling device for a channel's match notifications."""
    channel_id: NonEmptyStr
    auth_token: NonEmptyStr
    device_id: NonEmptyStr
    locale: NonEmptyStr
    subscription: PushSubscriptionShape


class UnsubscribeRequest(CamelModel):
    channel_id: NonEmptyStr
    auth_token: NonEmptyStr
    subscription: PushSubscriptionShape


class NotifyMatchRequest(MatchPushEvent):
    """Announce a recorded match. The winner must be one of the two players."""
