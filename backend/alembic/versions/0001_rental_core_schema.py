"""Rental core schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _money(name: str, *, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(14, 4))
    return sa.Column(name, sa.Numeric(14, 4), nullable=False, server_default="0")


def upgrade() -> None:
    op.create_table(
        "price_lists",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        _money("hourly_rate", nullable=True),
        _money("daily_rate", nullable=True),
        _money("weekly_rate", nullable=True),
        _money("monthly_rate", nullable=True),
        _money("kilometer_charge", nullable=True),
        _money("daily_km_allowed", nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "misc_charges",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        _money("amount"),
        sa.Column("taxable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    reservation_status_enum = sa.Enum(
        "pending",
        "confirmed",
        "checked_out",
        "completed",
        "cancelled",
        name="reservationstatus",
    )
    down_payment_status_enum = sa.Enum("pending", "paid", name="downpaymentstatus")

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("reservation_no", sa.String(length=64), unique=True),
        sa.Column("customer_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("vehicle_id", sa.Uuid(as_uuid=True)),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            reservation_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "down_payment_status",
            down_payment_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("price_list_code", sa.String(length=64)),
        sa.Column("promo_code", sa.String(length=64)),
        _money("discount_value"),
        _money("pre_adjustment"),
        _money("advance_payment"),
        _money("security_deposit_paid"),
        _money("cancellation_charges"),
        sa.Column(
            "misc_charge_codes",
            postgresql.JSONB().with_variant(sa.JSON(), "sqlite"),
            nullable=False,
        ),
        _money("net_amount"),
        _money("total_amount"),
        sa.Column("notes", sa.String(length=1024)),
        sa.Column("converted_agreement_id", sa.Uuid(as_uuid=True)),
        *_timestamps(),
    )
    op.create_index(
        "ix_reservations_converted_agreement_id",
        "reservations",
        ["converted_agreement_id"],
    )

    op.create_table(
        "reservation_lines",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "reservation_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("line_no", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("vehicle_id", sa.Uuid(as_uuid=True)),
        sa.Column("check_out_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_in_at", sa.DateTime(timezone=True), nullable=False),
        _money("line_net_price"),
        _money("tax_value"),
        _money("discount_value"),
        sa.Column("price_source", sa.String(length=16)),
        *_timestamps(),
    )

    agreement_status_enum = sa.Enum("active", "closed", "void", name="agreementstatus")

    op.create_table(
        "agreements",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("agreement_no", sa.String(length=64), nullable=False, unique=True),
        sa.Column(
            "reservation_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("reservations.id", ondelete="SET NULL"),
        ),
        sa.Column("customer_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("vehicle_id", sa.Uuid(as_uuid=True)),
        sa.Column("agreement_date", sa.Date(), nullable=False),
        sa.Column("checkout_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_at", sa.DateTime(timezone=True), nullable=False),
        _money("total_amount"),
        sa.Column(
            "status",
            agreement_status_enum,
            nullable=False,
            server_default="active",
        ),
        sa.Column("notes", sa.String(length=1024)),
        *_timestamps(),
        sa.UniqueConstraint("reservation_id", name="uq_agreement_reservation"),
    )

    op.create_table(
        "agreement_lines",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "agreement_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("agreements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vehicle_id", sa.Uuid(as_uuid=True)),
        sa.Column("check_out_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_in_at", sa.DateTime(timezone=True), nullable=False),
        _money("line_net"),
        _money("line_total"),
        *_timestamps(),
    )

    sequences = op.create_table(
        "agreement_sequences",
        sa.Column("name", sa.String(length=64), primary_key=True),
        sa.Column("last_value", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.bulk_insert(sequences, [{"name": "agreement", "last_value": 0}])


def downgrade() -> None:
    op.drop_table("agreement_sequences")
    op.drop_table("agreement_lines")
    op.drop_table("agreements")
    op.drop_table("reservation_lines")
    op.drop_index("ix_reservations_converted_agreement_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("misc_charges")
    op.drop_table("price_lists")
    sa.Enum(name="agreementstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="downpaymentstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="reservationstatus").drop(op.get_bind(), checkfirst=True)
