"""Schema exports."""

from rentops.schemas.agreement import AgreementLineRead, AgreementRead, ConversionRead
from rentops.schemas.pricing import (
    LinePriceRead,
    LinePriceRequest,
    PaymentScheduleRead,
    PricingContextRead,
    PricingContextRequest,
    SummaryRead,
    SummaryRequest,
)
from rentops.schemas.reservation import (
    ReservationCreate,
    ReservationLineCreate,
    ReservationLineRead,
    ReservationRead,
    ReservationReprice,
    ReservationUpdate,
)

__all__ = [
    "AgreementLineRead",
    "AgreementRead",
    "ConversionRead",
    "LinePriceRead",
    "LinePriceRequest",
    "PaymentScheduleRead",
    "PricingContextRead",
    "PricingContextRequest",
    "ReservationCreate",
    "ReservationLineCreate",
    "ReservationLineRead",
    "ReservationRead",
    "ReservationReprice",
    "ReservationUpdate",
    "SummaryRead",
    "SummaryRequest",
]
