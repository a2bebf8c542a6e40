"""
HTTP client for the push API.

Every call reports success as a bool (``response.ok``); network failures
are logged and reported as False so callers can fall back to the queue.
"""
import logging
from typing import Any, Dict, Optional, Union

import requests

from push.models import MatchPushEvent

logger = logging.getLogger(__name__)


class PushApiClient:
    """
    Posts JSON to the push endpoints.

    Args:
        base_url: Server root, e.g. ``https://league.example.com/api``
        session: Optional requests session (shared connection pool)
        timeout_seconds: Per-request timeout
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = 10.0
    ):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def _post_json(self, path: str, body: Dict[str, Any]) -> bool:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(
                url,
                json=body,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout_seconds
            )
        except requests.RequestException as e:
            logger.warning(f"POST {path} failed: {e}")
            return False

        if not response.ok:
            logger.warning(f"POST {path} returned {response.status_code}")
        return response.ok

    def subscribe_push(
        self,
        channel_id: str,
        auth_token: str,
        device_id: str,
        locale: str,
        subscription: Dict[str, Any]
    ) -> bool:
        return self._post_json('/push/subscribe', {
            'channelId': channel_id,
            'authToken': auth_token,
            'deviceId': device_id,
            'locale': locale,
            'subscription': subscription,
        })

    def unsubscribe_push(self, channel_id: str, auth_token: str, subscription: Dict[str, Any]) -> bool:
        return self._post_json('/push/unsubscribe', {
            'channelId': channel_id,
            'authToken': auth_token,
            'subscription': subscription,
        })

    def notify_match_push(self, event: Union[MatchPushEvent, Dict[str, Any]]) -> bool:
        """Send one match event. Accepts a model or a queued camelCase dict."""
        if isinstance(event, MatchPushEvent):
            event = event.to_json_dict()
        return self._post_json('/push/notify-match', event)
