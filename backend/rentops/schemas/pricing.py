"""Pricing schema definitions."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from rentops.services.summary_service import PaymentTerms

# Operator-entered amounts arrive as numbers, numeric strings or junk; the
# pricing layer decides what is usable.
LooseAmount = int | float | str | None


class RateOverrides(BaseModel):
    """Rate-bucket values typed into the booking panel."""

    hourly: LooseAmount = None
    daily: LooseAmount = None
    weekly: LooseAmount = None
    monthly: LooseAmount = None
    kilometer_charge: LooseAmount = None
    daily_km_allowed: LooseAmount = None


class FallbackRatesInput(BaseModel):
    """Explicit price-list rates supplied by the caller."""

    hourly: LooseAmount = None
    daily: LooseAmount = None
    weekly: LooseAmount = None
    monthly: LooseAmount = None


class PricingContextRequest(RateOverrides):
    """Raw operator input for building a pricing context."""

    price_list_id: str | None = None
    promo_code: str | None = None


class PricingContextRead(BaseModel):
    """Resolved pricing context."""

    price_list_id: str
    promo_code: str | None
    hourly: Decimal | None
    daily: Decimal | None
    weekly: Decimal | None
    monthly: Decimal | None
    kilometer_charge: Decimal | None
    daily_km_allowed: Decimal | None
    lock_rates_on_promo: bool
    prefer_panel_rates: bool

    model_config = ConfigDict(from_attributes=True)


class LinePriceRequest(BaseModel):
    """Span to price plus the rates to price it with."""

    check_out_at: datetime
    check_in_at: datetime
    price_list_code: str | None = None
    promo_code: str | None = None
    rates: RateOverrides | None = None
    fallback: FallbackRatesInput | None = None


class LinePriceRead(BaseModel):
    """Resolved price of a single line."""

    line_net_price: Decimal
    source: str | None
    bucket: str
    multiplier: int
    rate: Decimal | None

    model_config = ConfigDict(from_attributes=True)


class SummaryLineInput(BaseModel):
    """Already priced line fed into the rollup."""

    line_net_price: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    tax_value: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    discount_value: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))


class SummaryRequest(BaseModel):
    """Input payload for computing a booking summary."""

    lines: list[SummaryLineInput] = Field(default_factory=list)
    selected_charge_ids: list[str] = Field(default_factory=list)
    promo_code: str | None = None
    discount_value: Decimal = Decimal("0")
    pre_adjustment: Decimal = Decimal("0")
    advance_payment: Decimal = Decimal("0")
    security_deposit_paid: Decimal = Decimal("0")
    cancellation_charges: Decimal = Decimal("0")
    payment_terms: PaymentTerms | None = None
    as_of: date | None = None


class PaymentScheduleRead(BaseModel):
    """Due date and minimum payment for the chosen terms."""

    terms: PaymentTerms
    due_date: date
    minimum_payment_due: Decimal

    model_config = ConfigDict(from_attributes=True)


class SummaryRead(BaseModel):
    """Derived booking totals."""

    base_rate: Decimal
    promotion: Decimal
    final_base_rate: Decimal
    misc_taxable: Decimal
    misc_non_taxable: Decimal
    pre_adjustment: Decimal
    pre_subtotal: Decimal
    discount_on_subtotal: Decimal
    subtotal: Decimal
    tax_total: Decimal
    estimated_total: Decimal
    grand_total: Decimal
    advance_paid: Decimal
    balance_due: Decimal
    cancellation_fee: Decimal
    security_deposit_paid: Decimal
    reservation_id: uuid.UUID | None = None
    payment_schedule: PaymentScheduleRead | None = None

    model_config = ConfigDict(from_attributes=True)
