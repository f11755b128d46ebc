"""Service helpers for reading agreements."""

from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentops.models.agreement import Agreement, AgreementStatus


def _base_agreement_query() -> Select[tuple[Agreement]]:
    return select(Agreement).options(selectinload(Agreement.lines))


async def list_agreements(
    session: AsyncSession,
    *,
    status: AgreementStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Agreement]:
    stmt = _base_agreement_query().order_by(Agreement.created_at.desc())
    if status is not None:
        stmt = stmt.where(Agreement.status == status)
    result = await session.execute(stmt.offset(skip).limit(limit))
    return result.scalars().unique().all()


async def get_agreement(
    session: AsyncSession,
    *,
    agreement_id: uuid.UUID,
) -> Agreement | None:
    stmt = (
        _base_agreement_query()
        .where(Agreement.id == agreement_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def get_agreement_for_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
) -> Agreement | None:
    stmt = (
        _base_agreement_query()
        .where(Agreement.reservation_id == reservation_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()
