"""HMAC signing for bag QR tokens."""

from __future__ import annotations

import hashlib
import hmac
import string

from snapbag_api.core.settings import settings


_SIGNATURE_LENGTH = hashlib.sha256().digest_size * 2
_HEX_DIGITS = frozenset(string.hexdigits)


class BagTokenSigner:
    """Sign bag identifiers and verify presented signatures in constant time."""

    def __init__(self, secret: str | None = None) -> None:
        self._secret = (secret if secret is not None else settings.bag_hmac_secret).encode("utf-8")

    def sign(self, bag_id: str) -> str:
        """Return the lowercase hex HMAC-SHA256 of ``bag_id``."""

        return self._digest(bag_id).hex()

    def verify(self, bag_id: str, signature: str) -> bool:
        """Return ``True`` only for the signature issued for ``bag_id``.

        Only exactly 64 hex digits are accepted, in either case. Whitespace,
        wrong lengths and non-string input are plain failures.
        """

        if not isinstance(bag_id, str) or not isinstance(signature, str):
            return False
        if len(signature) != _SIGNATURE_LENGTH or not _HEX_DIGITS.issuperset(signature):
            return False
        provided = bytes.fromhex(signature)
        return hmac.compare_digest(provided, self._digest(bag_id))

    def _digest(self, bag_id: str) -> bytes:
        return hmac.new(self._secret, bag_id.encode("utf-8", "surrogatepass"), hashlib.sha256).digest()
