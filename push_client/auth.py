"""Channel credential derivation on the client side."""
import hashlib

AUTH_PREFIX = "ttl-push-v1:"


def derive_channel_auth_token(mnemonic: str) -> str:
    """
    Derive the channel auth token from the owner's mnemonic.

    Every device holding the same mnemonic derives the same token, so they
    all authenticate against one channel credential.

    Args:
        mnemonic: Owner secret phrase; surrounding whitespace is ignored

    Returns:
        Lowercase hex SHA-256 of ``"ttl-push-v1:" + mnemonic.strip()``
    """
    return hashlib.sha256(f"{AUTH_PREFIX}{mnemonic.strip()}".encode('utf-8')).hexdigest()
