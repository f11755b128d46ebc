"""Pydantic schemas for reservations."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from rentops.models.reservation import DownPaymentStatus, ReservationStatus
from rentops.schemas.pricing import RateOverrides


class ReservationLineCreate(BaseModel):
    """Vehicle and date range to book."""

    check_out_at: datetime
    check_in_at: datetime
    vehicle_id: uuid.UUID | None = None
    tax_value: Decimal | None = Field(default=None, ge=Decimal("0"))
    discount_value: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))


class ReservationCreate(BaseModel):
    """Payload for creating reservations."""

    customer_id: uuid.UUID
    vehicle_id: uuid.UUID | None = None
    reservation_no: str | None = None
    price_list_code: str | None = None
    promo_code: str | None = None
    rates: RateOverrides | None = None
    discount_value: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    pre_adjustment: Decimal = Decimal("0")
    advance_payment: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    security_deposit_paid: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    cancellation_charges: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    misc_charge_codes: list[str] = Field(default_factory=list)
    status: ReservationStatus = ReservationStatus.PENDING
    down_payment_status: DownPaymentStatus = DownPaymentStatus.PENDING
    notes: str | None = None
    lines: list[ReservationLineCreate] = Field(min_length=1)


class ReservationUpdate(BaseModel):
    """Mutable reservation fields."""

    status: ReservationStatus | None = None
    down_payment_status: DownPaymentStatus | None = None
    notes: str | None = None


class ReservationReprice(BaseModel):
    """New rates to re-price every line of a reservation with."""

    price_list_code: str | None = None
    rates: RateOverrides | None = None


class ReservationLineRead(BaseModel):
    """Serialized reservation line."""

    id: uuid.UUID
    line_no: int
    vehicle_id: uuid.UUID | None = None
    check_out_at: datetime
    check_in_at: datetime
    line_net_price: Decimal
    tax_value: Decimal
    discount_value: Decimal
    price_source: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    reservation_no: str | None = None
    customer_id: uuid.UUID
    vehicle_id: uuid.UUID | None = None
    start_at: datetime
    end_at: datetime
    status: ReservationStatus
    down_payment_status: DownPaymentStatus
    price_list_code: str | None = None
    promo_code: str | None = None
    discount_value: Decimal
    pre_adjustment: Decimal
    advance_payment: Decimal
    security_deposit_paid: Decimal
    cancellation_charges: Decimal
    misc_charge_codes: list[str] = Field(default_factory=list)
    net_amount: Decimal
    total_amount: Decimal
    notes: str | None = None
    converted_agreement_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    lines: list[ReservationLineRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
