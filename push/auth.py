"""
Channel Auth - token hashing and verification.

The first subscribe call for a channel stores the hash of its auth token
("bootstrap"); every later call must present a token with the same hash.
"""
import hashlib
import hmac
import logging

from core.store import ChannelStore

logger = logging.getLogger(__name__)


def hash_auth_token(auth_token: str) -> str:
    """One-way SHA-256 hex digest of an auth token."""
    return hashlib.sha256(auth_token.encode('utf-8')).hexdigest()


def safe_equal(a: str, b: str) -> bool:
    """Constant-time string comparison."""
    return hmac.compare_digest(a.encode('utf-8'), b.encode('utf-8'))


class ChannelAuthService:

    def __init__(self, store: ChannelStore):
        self.store = store

    def verify_channel_auth(
        self,
        channel_id: str,
        auth_token: str,
        allow_bootstrap: bool = False
    ) -> bool:
        """
        Verify ``auth_token`` against the channel's stored credential.

        Args:
            channel_id: Channel identifier
            auth_token: Token presented by the client
            allow_bootstrap: Store the token's hash if the channel has none yet

        Returns:
            True if the token is accepted
        """
        token_hash = hash_auth_token(auth_token)
        existing = self.store.get_channel_token_hash(channel_id)

        if not existing:
            if not allow_bootstrap:
                logger.info(f"Rejected unknown channel {channel_id} (bootstrap not allowed)")
                return False
            self.store.set_channel_token_hash(channel_id, token_hash)
            logger.info(f"Bootstrapped credential for channel {channel_id}")
            return True

        accepted = safe_equal(existing, token_hash)
        if not accepted:
            logger.warning(f"Auth token mismatch for channel {channel_id}")
        return accepted
