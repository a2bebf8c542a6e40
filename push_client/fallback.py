"""
Device identity and the local fallback queue.

Match events that could not be delivered are kept as a JSON array under
``push-notify-queue-v1`` and retried later, oldest first. The server
deduplicates by event id, so a retry that races a successful send is harmless.
"""
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Union

from push.models import MatchPushEvent
from push_client.storage import KeyValueStorage

logger = logging.getLogger(__name__)

FALLBACK_QUEUE_STORAGE_KEY = "push-notify-queue-v1"
PUSH_DEVICE_ID_KEY = "push-device-id-v1"

QueueItem = Dict[str, Any]
SendFunction = Callable[[QueueItem], bool]


@dataclass
class FlushResult:
    sent: int = 0
    kept: int = 0


def create_push_event_id() -> str:
    return str(uuid.uuid4())


def get_or_create_push_device_id(storage: KeyValueStorage) -> str:
    """Return this device's stable id, generating and persisting one on first use."""
    existing = storage.get_item(PUSH_DEVICE_ID_KEY)
    if existing:
        return existing

    device_id = create_push_event_id()
    storage.set_item(PUSH_DEVICE_ID_KEY, device_id)
    return device_id


def read_fallback_queue(storage: KeyValueStorage) -> List[QueueItem]:
    """Read queued events. A missing, unparsable or non-array value reads as empty."""
    raw = storage.get_item(FALLBACK_QUEUE_STORAGE_KEY)
    if not raw:
        return []

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Fallback queue is not valid JSON; treating it as empty")
        return []

    if not isinstance(parsed, list):
        return []
    return parsed


def _write_queue(storage: KeyValueStorage, queue: List[QueueItem]) -> None:
    storage.set_item(FALLBACK_QUEUE_STORAGE_KEY, json.dumps(queue))


def enqueue_fallback_queue_item(
    storage: KeyValueStorage,
    item: Union[MatchPushEvent, QueueItem]
) -> List[QueueItem]:
    """
    Append an event to the fallback queue.

    Returns:
        The queue as written
    """
    if isinstance(item, MatchPushEvent):
        item = item.to_json_dict()

    queue = read_fallback_queue(storage) + [item]
    _write_queue(storage, queue)
    return queue


def flush_fallback_queue(storage: KeyValueStorage, send: SendFunction) -> FlushResult:
    """
    Retry every queued event once, in queue order.

    Only items whose ``send`` returned True are dropped; everything else is
    written back in its original order. A ``send`` that raises counts as a
    failed send.

    Args:
        storage: Storage holding the queue
        send: Delivers one item, returning True on success

    Returns:
        FlushResult with the number sent and the number kept
    """
    queue = read_fallback_queue(storage)
    kept: List[QueueItem] = []
    sent = 0

    for item in queue:
        try:
            ok = send(item) is True
        except Exception as e:
            logger.warning(f"Fallback send failed: {e}")
            ok = False

        if ok:
            sent += 1
        else:
            kept.append(item)

    _write_queue(storage, kept)

    if queue:
        logger.info(f"Flushed fallback queue: {sent} sent, {len(kept)} kept")
    return FlushResult(sent=sent, kept=len(kept))
