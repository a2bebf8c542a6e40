"""
Push Module

Server side of the league's Web Push pipeline: channel auth, subscription
registry, event dedup, fan-out and stale endpoint pruning.

Usage:
    from core.app_context import AppContext

    context = AppContext.build(load_config())
    outcome = context.push_service.notify_match(event)
    print(outcome.deduped, outcome.result.sent)
"""

from push.exceptions import (
    PushError,
    UnauthorizedChannelError,
    PushConfigurationError,
    PushDeliveryError,
)

from push.models import (
    PushSubscriptionShape,
    PushSubscriptionRecord,
    MatchPushEvent,
    MatchPushPayload,
    FanOutResult,
)

from push.auth import ChannelAuthService, hash_auth_token
from push.registry import SubscriptionRegistry
from push.dedup import EventDedupGate
from push.transport import PushTransport, WebPushTransport, DryRunPushTransport, get_push_transport
from push.fanout import FanOutEngine
from push.maintenance import StaleEndpointPruner
from push.service import PushService, NotifyMatchOutcome

__all__ = [
    # Errors
    'PushError',
    'UnauthorizedChannelError',
    'PushConfigurationError',
    'PushDeliveryError',
    # Models
    'PushSubscriptionShape',
    'PushSubscriptionRecord',
    'MatchPushEvent',
    'MatchPushPayload',
    'FanOutResult',
    # Components
    'ChannelAuthService',
    'hash_auth_token',
    'SubscriptionRegistry',
    'EventDedupGate',
    'PushTransport',
    'WebPushTransport',
    'DryRunPushTransport',
    'get_push_transport',
    'FanOutEngine',
    'StaleEndpointPruner',
    'PushService',
    'NotifyMatchOutcome',
]
