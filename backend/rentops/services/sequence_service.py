"""Agreement number allocation."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentops.core.config import get_settings
from rentops.models import AgreementSequence

logger = logging.getLogger(__name__)

AGREEMENT_SEQUENCE = "agreement"


class AgreementNumberError(RuntimeError):
    """Raised when a new agreement number cannot be allocated."""


def format_agreement_number(value: int) -> str:
    settings = get_settings()
    return f"{settings.agreement_number_prefix}-{value:0{settings.agreement_number_width}d}"


async def next_agreement_number(session: AsyncSession) -> str:
    """Allocate the next agreement number inside the caller's transaction.

    The counter row stays locked until the caller commits or rolls back.
    Numbers are unique and increasing but may skip values.
    """

    try:
        result = await session.execute(
            update(AgreementSequence)
            .where(AgreementSequence.name == AGREEMENT_SEQUENCE)
            .values(last_value=AgreementSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            session.add(AgreementSequence(name=AGREEMENT_SEQUENCE, last_value=1))
            await session.flush()
        value = await session.scalar(
            select(AgreementSequence.last_value).where(
                AgreementSequence.name == AGREEMENT_SEQUENCE
            )
        )
    except SQLAlchemyError as exc:
        raise AgreementNumberError("Unable to allocate agreement number") from exc
    if value is None:
        raise AgreementNumberError("Agreement sequence row missing")
    return format_agreement_number(int(value))
