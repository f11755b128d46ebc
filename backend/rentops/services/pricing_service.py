"""Price list and charge catalog lookups feeding the pure pricing modules."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentops.models import MiscCharge, PriceList, Reservation
from rentops.services import summary_service
from rentops.services.rate_service import FallbackRates


async def get_price_list(session: AsyncSession, code: str) -> PriceList | None:
    stmt = select(PriceList).where(PriceList.code == code, PriceList.active.is_(True))
    result = await session.execute(stmt)
    return result.scalars().one_or_none()


async def get_fallback_rates(
    session: AsyncSession, code: str | None
) -> FallbackRates | None:
    """Return the bucket rates of an active price list, if one matches."""

    if not code:
        return None
    price_list = await get_price_list(session, code)
    if price_list is None:
        return None
    return FallbackRates.from_values(
        hourly=price_list.hourly_rate,
        daily=price_list.daily_rate,
        weekly=price_list.weekly_rate,
        monthly=price_list.monthly_rate,
    )


async def load_charge_catalog(session: AsyncSession) -> dict[str, MiscCharge]:
    """Map active misc charge codes to their catalog rows."""

    stmt = select(MiscCharge).where(MiscCharge.active.is_(True))
    result = await session.execute(stmt)
    return {charge.code: charge for charge in result.scalars().all()}


async def quote_reservation(
    session: AsyncSession,
    *,
    reservation_id: UUID,
) -> summary_service.Summary:
    """Recompute the summary of a stored reservation from its lines."""

    stmt = (
        select(Reservation)
        .options(selectinload(Reservation.lines))
        .where(Reservation.id == reservation_id)
    )
    result = await session.execute(stmt)
    reservation = result.scalars().unique().one_or_none()
    if reservation is None:
        raise ValueError("Reservation not found")

    catalog = await load_charge_catalog(session)
    return summary_service.compute_summary(
        reservation.lines,
        reservation.misc_charge_codes or [],
        catalog,
        promo_code=reservation.promo_code,
        discount_value=reservation.discount_value,
        pre_adjustment=reservation.pre_adjustment,
        advance_payment=reservation.advance_payment,
        security_deposit_paid=reservation.security_deposit_paid,
        cancellation_charges=reservation.cancellation_charges,
    )
