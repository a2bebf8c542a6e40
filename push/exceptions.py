"""Exceptions raised by the push delivery pipeline."""
from typing import Optional

GONE_STATUS_CODES = frozenset({404, 410})


class PushError(Exception):
    """Base exception for push pipeline errors."""
    pass


class UnauthorizedChannelError(PushError):
    """Raised when the auth token does not match the channel credential."""
    pass


class PushConfigurationError(PushError):
    """Raised when VAPID credentials are missing or the transport cannot be configured."""
    pass


class PushDeliveryError(PushError):
    """
    A single push attempt was rejected or could not reach the push service.

    ``status_code`` is the HTTP status reported by the push service, or None
    when the request never got a response.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_gone(self) -> bool:
        """True if the push service reports the endpoint as permanently invalid."""
        return self.status_code in GONE_STATUS_CODES
