#!/usr/bin/env python3
"""
Event Dedup Gate - at-most-once processing of notify events.

Each (channel_id, event_id) pair may be claimed once per TTL window. The
claim is a single atomic Redis ``SET NX EX``, never a read followed by a
write, so concurrent retries of the same request cannot both fan out.

Usage:
    gate = EventDedupGate(store)

    if not gate.mark_event_if_new(channel_id, event_id):
        return  # already handled

    try:
        deliver(...)
    except Exception:
        gate.clear_event_mark(channel_id, event_id)  # let the client retry
        raise
"""
import logging

from core.config_loader import EVENT_DEDUP_TTL_SECONDS
from core.store import ChannelStore

logger = logging.getLogger(__name__)


class EventDedupGate:

    def __init__(self, store: ChannelStore, ttl_seconds: int = EVENT_DEDUP_TTL_SECONDS):
        """
        Initialize the gate.

        Args:
            store: Channel store providing the atomic claim primitive
            ttl_seconds: How long a claim blocks reprocessing (default 7 days)
        """
        self.store = store
        self.ttl_seconds = ttl_seconds

    def mark_event_if_new(self, channel_id: str, event_id: str) -> bool:
        """
        Claim an event.

        Returns:
            True if newly claimed (proceed), False if already processed
        """
        claimed = self.store.claim_key(channel_id, event_id, self.ttl_seconds)
        if not claimed:
            logger.info(f"Suppressing duplicate event {event_id} for channel {channel_id}")
        return claimed

    def clear_event_mark(self, channel_id: str, event_id: str) -> None:
        """Undo a claim so a retry of the same event is processed."""
        self.store.release_key(channel_id, event_id)
        logger.info(f"Released claim on event {event_id} for channel {channel_id}")
