"""Deterministic per-feed identity derivation."""

import hashlib
import hmac

from .errors import ConfigurationError
from .models import FeedEntity

# Order of the secp256k1 group; valid private keys lie in [1, n - 1]
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def derive_private_key(secret: str | bytes, feed_url: str) -> str:
    """Derive the hex private key for a feed from the process secret.

    HMAC-SHA256 keyed by the secret over the feed URL. A digest outside the
    secp256k1 scalar range is folded into it; any other digest is returned
    as-is.

    Args:
        secret: Process-wide secret
        feed_url: Canonical feed URL

    Returns:
        64-character lowercase hex private key
    """
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    digest = hmac.new(key, feed_url.encode("utf-8"), hashlib.sha256).digest()

    scalar = int.from_bytes(digest, "big")
    if not 1 <= scalar < SECP256K1_ORDER:
        scalar = scalar % (SECP256K1_ORDER - 1) + 1
        return f"{scalar:064x}"

    return digest.hex()


class IdentityDeriver:
    """Derives feed identities from an injected, read-only secret."""

    def __init__(self, secret: str | bytes):
        if not secret:
            raise ConfigurationError("Identity secret cannot be empty")
        self._secret = secret

    def derive_identity(self, feed_url: str) -> str:
        return derive_private_key(self._secret, feed_url)

    def entity_for(self, feed_url: str) -> FeedEntity:
        return FeedEntity(url=feed_url, private_key=self.derive_identity(feed_url))

    def __repr__(self) -> str:
        return "IdentityDeriver(secret=<redacted>)"
