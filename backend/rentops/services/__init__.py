"""Service layer exports."""
from rentops.services import (
    agreement_service,
    conversion_service,
    pricing_service,
    rate_service,
    reservation_service,
    sequence_service,
    summary_service,
)

__all__ = [
    "agreement_service",
    "conversion_service",
    "pricing_service",
    "rate_service",
    "reservation_service",
    "sequence_service",
    "summary_service",
]
