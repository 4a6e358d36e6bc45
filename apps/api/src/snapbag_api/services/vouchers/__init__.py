"""Voucher lifecycle exports."""

from .lifecycle import (  # noqa: F401
    TERMINAL_STATUSES,
    VoucherLifecycleService,
    VoucherListing,
    VoucherView,
    evaluate_expiry,
    remaining_seconds,
)
from .redemption import PartnerRedemptionService, RedemptionReceipt  # noqa: F401
