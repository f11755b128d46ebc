"""Reservation models."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from rentops.db.base import Base
from rentops.models.mixins import TimestampMixin, enum_values

JSONB_TYPE = JSONB().with_variant(JSON(), "sqlite")


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_OUT = "checked_out"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DownPaymentStatus(str, enum.Enum):
    """Whether the booking deposit has been collected."""

    PENDING = "pending"
    PAID = "paid"


class Reservation(TimestampMixin, Base):
    """A vehicle booking that may later be converted into an agreement."""

    __tablename__ = "reservations"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    reservation_no: Mapped[str | None] = mapped_column(String(64), unique=True)
    customer_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    vehicle_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, name="reservationstatus", values_callable=enum_values),
        default=ReservationStatus.PENDING, nullable=False
    )
    down_payment_status: Mapped[DownPaymentStatus] = mapped_column(
        Enum(DownPaymentStatus, name="downpaymentstatus", values_callable=enum_values),
        default=DownPaymentStatus.PENDING, nullable=False
    )
    price_list_code: Mapped[str | None] = mapped_column(String(64))
    promo_code: Mapped[str | None] = mapped_column(String(64))
    discount_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    pre_adjustment: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    advance_payment: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    security_deposit_paid: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    cancellation_charges: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    misc_charge_codes: Mapped[list[Any]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    net_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(String(1024))
    # Set once by the conversion workflow, never cleared.
    converted_agreement_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True, index=True
    )

    lines: Mapped[list["ReservationLine"]] = relationship(
        "ReservationLine",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationLine.line_no",
    )


class ReservationLine(TimestampMixin, Base):
    """One vehicle/date-range allocation within a reservation."""

    __tablename__ = "reservation_lines"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False
    )
    line_no: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    vehicle_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    check_out_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    check_in_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    line_net_price: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    tax_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    discount_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    price_source: Mapped[str | None] = mapped_column(String(16))

    reservation: Mapped[Reservation] = relationship(
        "Reservation", back_populates="lines"
    )
