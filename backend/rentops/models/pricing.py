"""Price list and miscellaneous charge catalog models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from rentops.db.base import Base
from rentops.models.mixins import TimestampMixin


class PriceList(TimestampMixin, Base):
    """Rate table supplying fallback bucket rates for line pricing."""

    __tablename__ = "price_lists"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    weekly_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    monthly_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    kilometer_charge: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    daily_km_allowed: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class MiscCharge(TimestampMixin, Base):
    """Selectable ancillary charge (insurance, GPS, cleaning, ...)."""

    __tablename__ = "misc_charges"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    taxable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
