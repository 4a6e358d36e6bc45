"""Token signing and request throttling."""

from .rate_limiter import RateLimiter
from .token_signer import BagTokenSigner

__all__ = ["BagTokenSigner", "RateLimiter"]
