"""SQLAlchemy models package."""

# Import all models
from .user import User  # noqa: F401
from .partner import Partner  # noqa: F401
from .bag import Bag, BagBatch, BagScan  # noqa: F401
from .wheel import WheelPrize, WheelPrizeRewardType  # noqa: F401
from .voucher import Voucher, VoucherExpiryReason, VoucherStatus  # noqa: F401
from .transaction import PointsTransaction, PointsTransactionType  # noqa: F401
from .rate_limit import RateLimitWindow  # noqa: F401
