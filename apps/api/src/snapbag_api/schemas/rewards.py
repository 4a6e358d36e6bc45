from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from snapbag_api.core.clock import ensure_aware
from snapbag_api.models.voucher import VoucherExpiryReason, VoucherStatus
from snapbag_api.models.wheel import WheelPrize, WheelPrizeRewardType
from snapbag_api.services.vouchers import VoucherView


def _aware(value: datetime | None) -> datetime | None:
    return ensure_aware(value) if value is not None else None


class ScanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bag_id: str = Field(..., alias="bagId", min_length=1, max_length=128)
    hmac_signature: str = Field(..., alias="hmacSignature", min_length=1, max_length=256)
    device_id: str | None = Field(None, alias="deviceId", max_length=128)


class ScanResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scan_id: UUID = Field(..., alias="scanId")
    points_awarded: int = Field(..., alias="pointsAwarded")
    xp_awarded: int = Field(..., alias="xpAwarded")
    spins_awarded: int = Field(..., alias="spinsAwarded")


class WheelPrizeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    position: int
    title: str
    description: str | None = None
    conditions: str | None = None
    color: str
    start_angle: int = Field(..., alias="startAngle")
    end_angle: int = Field(..., alias="endAngle")
    validity_days: int = Field(..., alias="validityDays")
    is_national: bool = Field(..., alias="isNational")
    provinces: list[str] = Field(default_factory=list)
    reward_type: WheelPrizeRewardType = Field(..., alias="rewardType")
    points_amount: int = Field(0, alias="pointsAmount")
    partner_name: str | None = Field(None, alias="partnerName")

    @classmethod
    def from_prize(cls, prize: WheelPrize) -> "WheelPrizeResponse":
        return cls(
            id=prize.id,
            position=prize.position,
            title=prize.title,
            description=prize.description,
            conditions=prize.conditions,
            color=prize.color,
            start_angle=prize.start_angle,
            end_angle=prize.end_angle,
            validity_days=prize.validity_days,
            is_national=prize.is_national,
            provinces=list(prize.provinces or []),
            reward_type=prize.reward_type,
            points_amount=prize.points_amount,
            partner_name=prize.partner.name if prize.partner is not None else None,
        )


class WheelPrizeListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prizes: list[WheelPrizeResponse]
    has_local_prizes: bool = Field(..., alias="hasLocalPrizes")


class SpinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    landing_angle_degrees: float | None = Field(None, alias="landingAngleDegrees", allow_inf_nan=False)


class VoucherResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    code: str
    status: VoucherStatus
    expires_at: datetime = Field(..., alias="expiresAt")
    claimed_at: datetime | None = Field(None, alias="claimedAt")
    redeemed_at: datetime | None = Field(None, alias="redeemedAt")
    expired_reason: VoucherExpiryReason | None = Field(None, alias="expiredReason")
    created_at: datetime | None = Field(None, alias="createdAt")
    time_remaining: int | None = Field(None, alias="timeRemaining", description="Seconds left to redeem")
    prize: WheelPrizeResponse | None = None

    @classmethod
    def from_view(cls, view: VoucherView) -> "VoucherResponse":
        voucher = view.voucher
        return cls(
            id=voucher.id,
            code=voucher.code,
            status=voucher.status,
            expires_at=_aware(voucher.expires_at),
            claimed_at=_aware(voucher.claimed_at),
            redeemed_at=_aware(voucher.redeemed_at),
            expired_reason=voucher.expired_reason,
            created_at=_aware(voucher.created_at),
            time_remaining=view.remaining_seconds,
            prize=WheelPrizeResponse.from_prize(voucher.prize) if voucher.prize is not None else None,
        )


class SpinResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    voucher: VoucherResponse
    prize: WheelPrizeResponse
    landing_angle: float = Field(..., alias="landingAngle")
    spins_remaining: int = Field(..., alias="spinsRemaining")


class VoucherListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vouchers: list[VoucherResponse]
    unclaimed_count: int = Field(..., alias="unclaimedCount")


class VoucherClaimResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    claimed_at: datetime = Field(..., alias="claimedAt")


class VoucherVerificationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    message: str
    voucher: VoucherResponse
    time_remaining: int | None = Field(None, alias="timeRemaining")


class RedeemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    voucher_code: str = Field(..., alias="voucherCode", min_length=1, max_length=64)


class RedeemResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    points_awarded: int = Field(0, alias="pointsAwarded")
    redeemed_at: datetime = Field(..., alias="redeemedAt")
