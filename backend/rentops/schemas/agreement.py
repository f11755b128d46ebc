"""Pydantic schemas for rental agreements."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from rentops.models.agreement import AgreementStatus


class AgreementLineRead(BaseModel):
    """Serialized agreement line."""

    id: uuid.UUID
    vehicle_id: uuid.UUID | None = None
    check_out_at: datetime
    check_in_at: datetime
    line_net: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class AgreementRead(BaseModel):
    """Serialized agreement representation."""

    id: uuid.UUID
    agreement_no: str
    reservation_id: uuid.UUID | None = None
    customer_id: uuid.UUID
    vehicle_id: uuid.UUID | None = None
    agreement_date: date
    checkout_at: datetime
    return_at: datetime
    total_amount: Decimal
    status: AgreementStatus
    notes: str | None = None
    created_at: datetime
    lines: list[AgreementLineRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ConversionRead(BaseModel):
    """Outcome of converting a reservation."""

    agreement_id: uuid.UUID
    agreement_no: str
    reservation_id: uuid.UUID
    status: AgreementStatus
    created: bool
    line_warning: str | None = None

    model_config = ConfigDict(from_attributes=True)
