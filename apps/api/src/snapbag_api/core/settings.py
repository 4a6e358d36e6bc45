from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitPolicy(BaseModel):
    """Quota applied to a single rate-limited action."""

    max_requests: int = Field(..., gt=0)
    window_minutes: int = Field(..., gt=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./snapbag.db"
    log_level: str = "INFO"
    tracing_enabled: bool = True

    # Bag token signing
    bag_hmac_secret: str = "default-secret-key"
    default_batch_slug: str = "default-batch"
    default_batch_name: str = "Legacy QR Codes"

    # Scan rewards
    scan_points_award: int = 5
    scan_xp_award: int = 5
    xp_per_level: int = 500
    # IANA zone for the daily spin boundary; server local time when unset
    spin_grant_timezone: str | None = None

    # Wheel & vouchers
    wheel_trust_client_angle: bool = False
    voucher_redemption_window_seconds: int = 10 * 60
    voucher_code_bytes: int = 8
    enforce_partner_match: bool = True

    # Internal API security
    internal_api_key: str = ""
    partner_api_key: str = ""

    # Rate limits (action -> quota)
    rate_limit_enabled: bool = True
    qr_scan_rate_limit: RateLimitPolicy = RateLimitPolicy(max_requests=10, window_minutes=60)
    wheel_spin_rate_limit: RateLimitPolicy = RateLimitPolicy(max_requests=30, window_minutes=10)
    voucher_claim_rate_limit: RateLimitPolicy = RateLimitPolicy(max_requests=20, window_minutes=10)
    partner_verify_rate_limit: RateLimitPolicy = RateLimitPolicy(max_requests=120, window_minutes=10)
    partner_redeem_rate_limit: RateLimitPolicy = RateLimitPolicy(max_requests=60, window_minutes=10)

    @field_validator("spin_grant_timezone", mode="before")
    @classmethod
    def _blank_timezone(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def rate_limit_for(self, action: str) -> RateLimitPolicy:
        policy = getattr(self, f"{action}_rate_limit", None)
        if not isinstance(policy, RateLimitPolicy):
            raise KeyError(f"No rate limit configured for action '{action}'")
        return policy


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
