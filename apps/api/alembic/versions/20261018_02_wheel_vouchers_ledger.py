"""Wheel prizes, vouchers, points ledger and rate limit windows.

Revision ID: 20261018_02
Revises: 20261018_01
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_02"
down_revision: Union[str, None] = "20261018_01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


reward_type_enum = sa.Enum("voucher", "points", name="wheel_prize_reward_type")
voucher_status_enum = sa.Enum("pending_claim", "claimed", "used", "expired", name="voucher_status")
expiry_reason_enum = sa.Enum("overall", "redemption_window", name="voucher_expiry_reason")
transaction_type_enum = sa.Enum("qr_scan", "wheel_spin", "voucher_redeem", name="points_transaction_type")


def upgrade() -> None:
    op.create_table(
        "wheel_prizes",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, unique=True),
        sa.Column(
            "partner_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            sa.ForeignKey("partners.id"),
            nullable=False,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("conditions", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.Column("start_angle", sa.Integer(), nullable=False),
        sa.Column("end_angle", sa.Integer(), nullable=False),
        sa.Column("validity_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_national", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("provinces", sa.JSON(), nullable=False),
        sa.Column("reward_type", reward_type_enum, nullable=False, server_default="voucher"),
        sa.Column("points_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "vouchers",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column(
            "user_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "prize_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            sa.ForeignKey("wheel_prizes.id"),
            nullable=False,
        ),
        sa.Column(
            "partner_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            sa.ForeignKey("partners.id"),
            nullable=False,
        ),
        sa.Column("status", voucher_status_enum, nullable=False, server_default="pending_claim"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "redeemed_by_partner_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            sa.ForeignKey("partners.id"),
            nullable=True,
        ),
        sa.Column("expired_reason", expiry_reason_enum, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_vouchers_code", "vouchers", ["code"], unique=True)
    op.create_index("ix_vouchers_user_id", "vouchers", ["user_id"])

    op.create_table(
        "points_transactions",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", transaction_type_enum, nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lifetime_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_points_transactions_user_id", "points_transactions", ["user_id"])

    op.create_table(
        "rate_limit_windows",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("identifier", sa.String(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("window_start", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index(
        "ix_rate_limit_windows_lookup",
        "rate_limit_windows",
        ["identifier", "action", "window_start"],
    )


def downgrade() -> None:
    op.drop_index("ix_rate_limit_windows_lookup", table_name="rate_limit_windows")
    op.drop_table("rate_limit_windows")
    op.drop_index("ix_points_transactions_user_id", table_name="points_transactions")
    op.drop_table("points_transactions")
    op.drop_index("ix_vouchers_user_id", table_name="vouchers")
    op.drop_index("ix_vouchers_code", table_name="vouchers")
    op.drop_table("vouchers")
    op.drop_table("wheel_prizes")

    bind = op.get_bind()
    for enum in (transaction_type_enum, expiry_reason_enum, voucher_status_enum, reward_type_enum):
        enum.drop(bind, checkfirst=True)
