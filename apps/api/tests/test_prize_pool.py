import pytest

from snapbag_api.models.wheel import WheelPrize
from snapbag_api.services.errors import NoPrizesAvailable
from snapbag_api.services.wheel import (
    eligible_prizes,
    normalize_angle,
    resolve_prize,
    segment_contains,
)


def _prize(position: int, start: int, end: int, *, national: bool = True, provinces=None) -> WheelPrize:
    return WheelPrize(
        position=position,
        title=f"Prize {position}",
        color="#000000",
        start_angle=start,
        end_angle=end,
        is_national=national,
        provinces=provinces or [],
    )


def test_wraparound_segment_membership() -> None:
    assert segment_contains(345, 15, 350)
    assert segment_contains(345, 15, 10)
    assert segment_contains(345, 15, 0)
    assert not segment_contains(345, 15, 15)
    assert not segment_contains(345, 15, 200)


def test_regular_segment_is_half_open() -> None:
    assert segment_contains(75, 105, 75)
    assert segment_contains(75, 105, 104.99)
    assert not segment_contains(75, 105, 105)


@pytest.mark.parametrize(
    ("angle", "expected"),
    [(0, 0.0), (360, 0.0), (725, 5.0), (-10, 350.0), (-370, 350.0), (359.5, 359.5)],
)
def test_normalize_angle(angle, expected) -> None:
    assert normalize_angle(angle) == pytest.approx(expected)


def test_normalize_angle_never_returns_full_turn() -> None:
    assert 0.0 <= normalize_angle(-1e-20) < 360.0


@pytest.mark.parametrize("angle", [float("nan"), float("inf"), float("-inf")])
def test_normalize_angle_rejects_non_finite(angle) -> None:
    with pytest.raises(ValueError):
        normalize_angle(angle)


def test_resolve_prize_by_angle() -> None:
    prizes = [_prize(1, 345, 15), _prize(2, 15, 45), _prize(3, 45, 345)]

    assert resolve_prize(prizes, 350).position == 1
    assert resolve_prize(prizes, 10).position == 1
    assert resolve_prize(prizes, 15).position == 2
    assert resolve_prize(prizes, 200).position == 3
    assert resolve_prize(prizes, -5).position == 1


def test_resolve_prize_falls_back_to_lowest_position() -> None:
    prizes = [_prize(5, 100, 120), _prize(2, 10, 20)]

    assert resolve_prize(prizes, 300).position == 2


def test_resolve_prize_requires_candidates() -> None:
    with pytest.raises(NoPrizesAvailable):
        resolve_prize([], 10)


def test_geofence_keeps_national_and_matching_province() -> None:
    national = _prize(1, 0, 90)
    utrecht = _prize(2, 90, 180, national=False, provinces=["Utrecht"])
    limburg = _prize(3, 180, 270, national=False, provinces=["Limburg", "Brabant"])

    assert eligible_prizes([national, utrecht, limburg], "Utrecht") == [national, utrecht]
    assert eligible_prizes([national, utrecht, limburg], "Brabant") == [national, limburg]
    assert eligible_prizes([national, utrecht, limburg], None) == [national]
