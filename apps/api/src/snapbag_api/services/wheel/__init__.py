"""Prize wheel exports."""

from .prize_pool import (  # noqa: F401
    eligible_prizes,
    is_eligible,
    normalize_angle,
    resolve_prize,
    segment_contains,
)
from .spin_service import SpinOutcome, SpinService, random_angle  # noqa: F401
