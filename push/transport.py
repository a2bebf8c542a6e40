#!/usr/bin/env python3
"""
Push Transports

The fan-out engine only sees the narrow ``PushTransport`` interface:

    transport.configure(subject, public_key, private_key)
    transport.send(subscription_info, payload_json)

``WebPushTransport`` signs and delivers through ``pywebpush``;
``DryRunPushTransport`` only logs, for local development.

Usage:
    from push.transport import get_push_transport

    transport = get_push_transport('webpush')
    transport.configure(subject, public_key, private_key)
    transport.send(record.subscription, json.dumps(payload))
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging
import os

import requests
from pywebpush import WebPushException, webpush

from core.logging_config import endpoint_host
from push.exceptions import PushConfigurationError, PushDeliveryError

logger = logging.getLogger(__name__)


def _is_dry_run_mode() -> bool:
    """Check if push delivery should run in dry-run (log-only) mode."""
    return os.environ.get('PUSH_DRY_RUN', '').lower() in ('true', '1', 'yes')


def _extract_status_code(exc: WebPushException) -> Optional[int]:
    """Extract an HTTP status code from a pywebpush exception when available."""
    response = getattr(exc, "response", None)
    if response is None:
        return None
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


class PushTransport(ABC):
    """
    Abstract base class for push transports.

    ``configure`` must be called before ``send``; calling it again with the
    same values is harmless.
    """

    @property
    @abstractmethod
    def transport_type(self) -> str:
        pass

    @abstractmethod
    def configure(self, subject: str, public_key: str, private_key: str) -> None:
        pass

    @abstractmethod
    def send(self, subscription: Dict[str, Any], payload: str) -> None:
        """
        Deliver one payload to one subscription.

        Raises:
            PushDeliveryError: The push service rejected or never received the message
        """
        pass


class WebPushTransport(PushTransport):
    """VAPID-signed Web Push delivery via ``pywebpush``."""

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds
        self._subject: Optional[str] = None
        self._public_key: Optional[str] = None
        self._private_key: Optional[str] = None

    @property
    def transport_type(self) -> str:
        return 'webpush'

    @property
    def is_configured(self) -> bool:
        return bool(self._subject and self._public_key and self._private_key)

    def configure(self, subject: str, public_key: str, private_key: str) -> None:
        if not (subject and public_key and private_key):
            raise PushConfigurationError("Missing VAPID configuration.")
        self._subject = subject
        self._public_key = public_key
        self._private_key = private_key

    def send(self, subscription: Dict[str, Any], payload: str) -> None:
        if not self.is_configured:
            raise PushConfigurationError("Web Push transport used before configure().")

        endpoint = subscription.get('endpoint', '')
        try:
            # pywebpush adds "aud"/"exp" to the claims dict, so build a fresh one per send
            webpush(
                subscription_info=subscription,
                data=payload,
                vapid_private_key=self._private_key,
                vapid_claims={'sub': self._subject},
                timeout=self.timeout_seconds
            )
        except WebPushException as e:
            status_code = _extract_status_code(e)
            raise PushDeliveryError(
                f"Push service rejected message for {endpoint_host(endpoint)} "
                f"(status={status_code if status_code is not None else 'unknown'})",
                status_code=status_code
            ) from e
        except requests.RequestException as e:
            raise PushDeliveryError(f"Could not reach push service {endpoint_host(endpoint)}: {e}") from e


class DryRunPushTransport(PushTransport):
    """Logs payloads instead of sending them."""

    def __init__(self):
        self._configured = False

    @property
    def transport_type(self) -> str:
        return 'dry_run'

    def configure(self, subject: str, public_key: str, private_key: str) -> None:
        self._configured = True

    def send(self, subscription: Dict[str, Any], payload: str) -> None:
        logger.info(f"[DRY RUN] Would push to {endpoint_host(subscription.get('endpoint', ''))}: {payload[:200]}")


_transports: Dict[str, PushTransport] = {}


def get_push_transport(transport_type: str = 'webpush', timeout_seconds: float = 10.0) -> PushTransport:
    """
    Get the process-wide transport instance for ``transport_type``.

    ``PUSH_DRY_RUN=1`` forces the dry-run transport.
    """
    if _is_dry_run_mode():
        transport_type = 'dry_run'

    transport = _transports.get(transport_type)
    if transport is None:
        if transport_type == 'webpush':
            transport = WebPushTransport(timeout_seconds=timeout_seconds)
        elif transport_type == 'dry_run':
            transport = DryRunPushTransport()
        else:
            raise PushConfigurationError(
                f"Unknown push transport: {transport_type}. Available: webpush, dry_run"
            )
        _transports[transport_type] = transport
        logger.info(f"Initialized {transport_type} push transport")
    return transport
