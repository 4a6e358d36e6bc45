"""Domain errors raised by the reward engine services.

Each error carries a stable ``code`` for clients and the HTTP status the API
layer maps it to. None of them are retried server-side.
"""

from __future__ import annotations

from fastapi import status


class RewardEngineError(RuntimeError):
    """Base exception for reward engine failures."""

    code = "reward_engine_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidSignature(RewardEngineError):
    code = "invalid_signature"
    default_message = "Invalid QR code signature"


class BagInactive(RewardEngineError):
    code = "bag_inactive"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "This bag has been deactivated"


class DuplicateScan(RewardEngineError):
    code = "duplicate_scan"
    status_code = status.HTTP_409_CONFLICT
    default_message = "You have already scanned this bag"


class RateLimited(RewardEngineError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests, please try again later"


class UserNotFound(RewardEngineError):
    code = "user_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class NoSpinsAvailable(RewardEngineError):
    code = "no_spins_available"
    default_message = "No spins available"


class NoPrizesAvailable(RewardEngineError):
    code = "no_prizes_available"
    default_message = "No prizes available for your location"


class SpinAlreadyConsumed(RewardEngineError):
    code = "spin_already_consumed"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Spin already used by a concurrent request"


class VoucherNotFound(RewardEngineError):
    code = "voucher_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Voucher not found"


class VoucherWrongOwner(RewardEngineError):
    code = "voucher_wrong_owner"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Voucher belongs to another user"


class VoucherWrongPartner(RewardEngineError):
    code = "voucher_wrong_partner"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Voucher is not redeemable at this partner"


class VoucherNotClaimed(RewardEngineError):
    code = "voucher_not_claimed"
    default_message = "Voucher has not been claimed by the customer yet"


class VoucherAlreadyClaimed(RewardEngineError):
    code = "voucher_already_claimed"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Voucher has already been claimed"


class VoucherAlreadyUsed(RewardEngineError):
    code = "voucher_already_used"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Voucher has already been used"


class VoucherExpired(RewardEngineError):
    code = "voucher_expired"
    status_code = status.HTTP_410_GONE
    default_message = "Voucher has expired"


class RedemptionWindowExpired(RewardEngineError):
    code = "redemption_window_expired"
    status_code = status.HTTP_410_GONE
    default_message = "QR code has expired (10 minute limit)"


__all__ = [
    "BagInactive",
    "DuplicateScan",
    "InvalidSignature",
    "NoPrizesAvailable",
    "NoSpinsAvailable",
    "RateLimited",
    "RedemptionWindowExpired",
    "RewardEngineError",
    "SpinAlreadyConsumed",
    "UserNotFound",
    "VoucherAlreadyClaimed",
    "VoucherAlreadyUsed",
    "VoucherExpired",
    "VoucherNotClaimed",
    "VoucherNotFound",
    "VoucherWrongOwner",
    "VoucherWrongPartner",
]
