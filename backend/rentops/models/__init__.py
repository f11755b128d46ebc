"""ORM models package export."""

from rentops.models.agreement import (
    Agreement,
    AgreementLine,
    AgreementSequence,
    AgreementStatus,
)
from rentops.models.pricing import MiscCharge, PriceList
from rentops.models.reservation import (
    DownPaymentStatus,
    Reservation,
    ReservationLine,
    ReservationStatus,
)

__all__ = [
    "Agreement",
    "AgreementLine",
    "AgreementSequence",
    "AgreementStatus",
    "DownPaymentStatus",
    "MiscCharge",
    "PriceList",
    "Reservation",
    "ReservationLine",
    "ReservationStatus",
]
