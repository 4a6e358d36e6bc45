"""Pure helpers for geofencing wheel prizes and mapping angles to segments."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from snapbag_api.models.wheel import WheelPrize
from snapbag_api.services.errors import NoPrizesAvailable


def is_eligible(prize: WheelPrize, province: str | None) -> bool:
    if prize.is_national:
        return True
    if not province:
        return False
    return province in (prize.provinces or [])


def eligible_prizes(prizes: Iterable[WheelPrize], province: str | None) -> list[WheelPrize]:
    """Filter to national prizes plus those offered in the user's province."""

    return [prize for prize in prizes if is_eligible(prize, province)]


def normalize_angle(angle: float) -> float:
    """Map ``angle`` into ``[0, 360)``; NaN and infinities raise ``ValueError``."""

    angle = float(angle)
    if not math.isfinite(angle):
        raise ValueError(f"landing angle must be finite, got {angle!r}")
    normalized = angle % 360.0
    # float modulo can round a tiny negative input up to exactly 360
    if normalized >= 360.0:
        return 0.0
    return normalized


def segment_contains(start: float, end: float, angle: float) -> bool:
    """Half-open ``[start, end)`` membership; ``start > end`` wraps through 0."""

    if start <= end:
        return start <= angle < end
    return angle >= start or angle < end


def resolve_prize(prizes: Sequence[WheelPrize], angle: float) -> WheelPrize:
    """Return the segment under ``angle`` scanning by position.

    Gaps in the configuration fall back to the lowest-positioned prize so a
    spin always resolves to something.
    """

    if not prizes:
        raise NoPrizesAvailable()
    ordered = sorted(prizes, key=lambda prize: prize.position)
    landing = normalize_angle(angle)
    for prize in ordered:
        if segment_contains(prize.start_angle, prize.end_angle, landing):
            return prize
    return ordered[0]
