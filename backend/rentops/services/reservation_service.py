"""Reservation management service helpers."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentops.core.config import get_settings
from rentops.models.reservation import (
    DownPaymentStatus,
    Reservation,
    ReservationLine,
    ReservationStatus,
)
from rentops.services import pricing_service, rate_service, summary_service

logger = logging.getLogger(__name__)

# COMPLETED is reachable only through conversion_service.
_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {
        ReservationStatus.CHECKED_OUT,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.CHECKED_OUT: set(),
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: set(),
}

_MONEY_PLACES = Decimal("0.0001")


@dataclass(slots=True)
class LineInput:
    """Requested vehicle allocation before pricing."""

    check_out_at: datetime
    check_in_at: datetime
    vehicle_id: uuid.UUID | None = None
    tax_value: Decimal | None = None
    discount_value: Decimal = Decimal("0")


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _validate_times(start_at: datetime, end_at: datetime) -> None:
    if _coerce_utc(start_at) >= _coerce_utc(end_at):
        raise ValueError("Check-in time must be after check-out time")


def _base_reservation_query():
    return (
        select(Reservation)
        .options(selectinload(Reservation.lines))
        .order_by(Reservation.start_at.desc())
    )


async def list_reservations(
    session: AsyncSession,
    *,
    status: ReservationStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Reservation]:
    stmt = _base_reservation_query()
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    result = await session.execute(stmt.offset(skip).limit(limit))
    return result.scalars().unique().all()


async def get_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
) -> Reservation | None:
    stmt = (
        _base_reservation_query()
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def _reload(session: AsyncSession, reservation_id: uuid.UUID) -> Reservation:
    reservation = await get_reservation(session, reservation_id=reservation_id)
    if reservation is None:
        raise ValueError("Reservation not found")
    return reservation


async def create_reservation(
    session: AsyncSession,
    *,
    customer_id: uuid.UUID,
    lines: Sequence[LineInput],
    vehicle_id: uuid.UUID | None = None,
    reservation_no: str | None = None,
    price_list_code: str | None = None,
    promo_code: str | None = None,
    rates: dict[str, Any] | None = None,
    discount_value: Decimal = Decimal("0"),
    pre_adjustment: Decimal = Decimal("0"),
    advance_payment: Decimal = Decimal("0"),
    security_deposit_paid: Decimal = Decimal("0"),
    cancellation_charges: Decimal = Decimal("0"),
    misc_charge_codes: Sequence[str] = (),
    status: ReservationStatus = ReservationStatus.PENDING,
    down_payment_status: DownPaymentStatus = DownPaymentStatus.PENDING,
    notes: str | None = None,
) -> Reservation:
    """Price the requested lines, roll them up and persist the reservation."""

    if not lines:
        raise ValueError("A reservation needs at least one line")
    if status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
        raise ValueError("New reservations must be pending or confirmed")
    for line in lines:
        _validate_times(line.check_out_at, line.check_in_at)

    settings = get_settings()
    context = rate_service.build_context(
        price_list_id=price_list_code,
        promo_code=promo_code,
        **(rates or {}),
    )
    fallback = await pricing_service.get_fallback_rates(session, price_list_code)

    reservation_lines: list[ReservationLine] = []
    for line_no, line in enumerate(lines, start=1):
        priced = rate_service.resolve_line_price(
            context, line.check_out_at, line.check_in_at, fallback
        )
        if priced.line_net_price <= 0 and settings.reject_zero_price_lines:
            raise ValueError(
                f"No {priced.bucket.value} rate configured for line {line_no}"
            )
        tax_value = line.tax_value
        if tax_value is None:
            tax_value = (priced.line_net_price * settings.default_line_tax_rate).quantize(
                _MONEY_PLACES, rounding=ROUND_HALF_UP
            )
        reservation_lines.append(
            ReservationLine(
                line_no=line_no,
                vehicle_id=line.vehicle_id or vehicle_id,
                check_out_at=line.check_out_at,
                check_in_at=line.check_in_at,
                line_net_price=priced.line_net_price,
                tax_value=tax_value,
                discount_value=line.discount_value,
                price_source=priced.source.value if priced.source else None,
            )
        )

    catalog = await pricing_service.load_charge_catalog(session)
    unknown = [code for code in misc_charge_codes if code not in catalog]
    if unknown:
        raise ValueError(f"Unknown misc charge(s): {', '.join(sorted(unknown))}")

    summary = summary_service.compute_summary(
        reservation_lines,
        misc_charge_codes,
        catalog,
        promo_code=context.promo_code,
        discount_value=discount_value,
        pre_adjustment=pre_adjustment,
        advance_payment=advance_payment,
        security_deposit_paid=security_deposit_paid,
        cancellation_charges=cancellation_charges,
    )

    reservation = Reservation(
        reservation_no=reservation_no,
        customer_id=customer_id,
        vehicle_id=vehicle_id or reservation_lines[0].vehicle_id,
        start_at=min(line.check_out_at for line in lines),
        end_at=max(line.check_in_at for line in lines),
        status=status,
        down_payment_status=down_payment_status,
        price_list_code=context.price_list_id or None,
        promo_code=context.promo_code,
        discount_value=discount_value,
        pre_adjustment=pre_adjustment,
        advance_payment=advance_payment,
        security_deposit_paid=security_deposit_paid,
        cancellation_charges=cancellation_charges,
        misc_charge_codes=list(dict.fromkeys(misc_charge_codes)),
        net_amount=summary.base_rate,
        total_amount=summary.grand_total,
        notes=notes,
        lines=reservation_lines,
    )
    session.add(reservation)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    logger.info(
        "Created reservation %s with %s line(s), total %s",
        reservation.id,
        len(reservation_lines),
        summary.grand_total,
    )
    return await _reload(session, reservation.id)


def _validate_status_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if target == current:
        return
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValueError(f"Invalid status transition from {current.value} to {target.value}")


def _ensure_mutable(reservation: Reservation) -> None:
    if reservation.converted_agreement_id is not None:
        raise ValueError("Reservation has already been converted to an agreement")


async def _apply_guarded_update(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    expected_status: ReservationStatus,
    values: dict[str, Any],
) -> Reservation:
    # Only an unconverted row still in the status the caller read is written.
    result = await session.execute(
        update(Reservation)
        .where(
            Reservation.id == reservation_id,
            Reservation.converted_agreement_id.is_(None),
            Reservation.status == expected_status,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        current = await _reload(session, reservation_id)
        _ensure_mutable(current)
        raise ValueError("Reservation was changed by another request; reload and retry")
    await session.commit()
    return await _reload(session, reservation_id)


async def update_status(
    session: AsyncSession,
    *,
    reservation: Reservation,
    status: ReservationStatus | None = None,
    down_payment_status: DownPaymentStatus | None = None,
    notes: str | None = None,
) -> Reservation:
    """Apply operator-driven status changes to an unconverted reservation."""

    _ensure_mutable(reservation)
    reservation_id = reservation.id
    expected_status = reservation.status
    values: dict[str, Any] = {}
    if status is not None:
        _validate_status_transition(expected_status, status)
        values["status"] = status
    if down_payment_status is not None:
        values["down_payment_status"] = down_payment_status
    if notes is not None:
        values["notes"] = notes
    if not values:
        return await _reload(session, reservation_id)

    return await _apply_guarded_update(
        session,
        reservation_id=reservation_id,
        expected_status=expected_status,
        values=values,
    )


async def reprice_reservation(
    session: AsyncSession,
    *,
    reservation: Reservation,
    rates: dict[str, Any] | None = None,
    price_list_code: str | None = None,
) -> Reservation:
    """Re-price every line against new rates and refresh the stored totals.

    Line taxes are recomputed at the default line tax rate.
    """

    _ensure_mutable(reservation)
    reservation_id = reservation.id
    expected_status = reservation.status
    settings = get_settings()
    code = price_list_code or reservation.price_list_code
    context = rate_service.build_context(
        price_list_id=code,
        promo_code=reservation.promo_code,
        **(rates or {}),
    )
    fallback = await pricing_service.get_fallback_rates(session, code)
    catalog = await pricing_service.load_charge_catalog(session)

    lines = sorted(reservation.lines, key=lambda line: line.line_no)
    priced = rate_service.reprice_lines(
        context, lines, fallback=fallback, tax_rate=settings.default_line_tax_rate
    )
    if settings.reject_zero_price_lines:
        for line, result in zip(lines, priced):
            if result.line_net_price <= 0:
                message = (
                    f"No {result.bucket.value} rate configured for line {line.line_no}"
                )
                await session.rollback()
                raise ValueError(message)

    summary = summary_service.compute_summary(
        lines,
        reservation.misc_charge_codes or [],
        catalog,
        promo_code=context.promo_code,
        discount_value=reservation.discount_value,
        pre_adjustment=reservation.pre_adjustment,
        advance_payment=reservation.advance_payment,
        security_deposit_paid=reservation.security_deposit_paid,
        cancellation_charges=reservation.cancellation_charges,
    )
    # Line changes are flushed with the guarded update and roll back with it.
    updated = await _apply_guarded_update(
        session,
        reservation_id=reservation_id,
        expected_status=expected_status,
        values={
            "price_list_code": context.price_list_id or None,
            "net_amount": summary.base_rate,
            "total_amount": summary.grand_total,
        },
    )
    logger.info(
        "Repriced reservation %s, total %s", reservation_id, summary.grand_total
    )
    return updated
