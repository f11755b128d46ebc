"""Rental agreements, their lines, and the agreement-number sequence."""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentops.db.base import Base
from rentops.models.mixins import TimestampMixin, enum_values


class AgreementStatus(str, enum.Enum):
    """Agreement lifecycle states."""

    ACTIVE = "active"
    CLOSED = "closed"
    VOID = "void"


class Agreement(TimestampMixin, Base):
    """Binding rental contract, usually created from a reservation."""

    __tablename__ = "agreements"
    __table_args__ = (
        UniqueConstraint("reservation_id", name="uq_agreement_reservation"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    agreement_no: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    reservation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    vehicle_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    agreement_date: Mapped[date] = mapped_column(Date, nullable=False)
    checkout_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    return_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    status: Mapped[AgreementStatus] = mapped_column(
        Enum(AgreementStatus, name="agreementstatus", values_callable=enum_values),
        default=AgreementStatus.ACTIVE, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(String(1024))

    lines: Mapped[list["AgreementLine"]] = relationship(
        "AgreementLine",
        back_populates="agreement",
        cascade="all, delete-orphan",
    )


class AgreementLine(TimestampMixin, Base):
    """Vehicle allocation on an agreement."""

    __tablename__ = "agreement_lines"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    agreement_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("agreements.id", ondelete="CASCADE"), nullable=False
    )
    vehicle_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    check_out_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    check_in_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    line_net: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )
    line_total: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), default=Decimal("0"), nullable=False
    )

    agreement: Mapped[Agreement] = relationship("Agreement", back_populates="lines")


class AgreementSequence(Base):
    """Named monotonic counter backing agreement numbers."""

    __tablename__ = "agreement_sequences"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_value: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
