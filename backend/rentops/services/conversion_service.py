"""Reservation-to-agreement conversion.

A confirmed reservation with a paid down payment is turned into exactly one
active agreement. All writes of one attempt share a single transaction and
the reservation is claimed with a conditional update on
``converted_agreement_id IS NULL``. A caller that loses a race, or repeats a
finished conversion, gets the existing agreement back instead of an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentops.models import (
    Agreement,
    AgreementLine,
    AgreementStatus,
    DownPaymentStatus,
    Reservation,
    ReservationStatus,
)
from rentops.services import agreement_service, sequence_service
from rentops.services.sequence_service import AgreementNumberError

logger = logging.getLogger(__name__)


class ConversionError(ValueError):
    """Reservation cannot be converted as requested."""

    code = "conversion_error"


class ReservationNotFoundError(ConversionError):
    code = "not_found"


class InvalidReservationStateError(ConversionError):
    code = "invalid_state"


class DownPaymentIncompleteError(ConversionError):
    code = "payment_incomplete"


class AgreementPersistenceError(RuntimeError):
    """Raised when the agreement or the reservation claim cannot be stored."""


@dataclass(slots=True)
class ConversionResult:
    """Identity of the agreement a reservation was converted into."""

    agreement_id: UUID
    agreement_no: str
    reservation_id: UUID
    status: AgreementStatus
    created: bool
    line_warning: str | None = None


async def _load_reservation(
    session: AsyncSession, reservation_id: UUID
) -> Reservation | None:
    stmt = (
        select(Reservation)
        .options(selectinload(Reservation.lines))
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


def _check_guard(reservation: Reservation) -> None:
    if reservation.status != ReservationStatus.CONFIRMED:
        raise InvalidReservationStateError(
            f"Reservation is {reservation.status.value}; only confirmed "
            "reservations can be converted"
        )
    if reservation.down_payment_status != DownPaymentStatus.PAID:
        raise DownPaymentIncompleteError("Down payment has not been received")


def _existing_result(agreement: Agreement, reservation_id: UUID) -> ConversionResult:
    return ConversionResult(
        agreement_id=agreement.id,
        agreement_no=agreement.agreement_no,
        reservation_id=reservation_id,
        status=agreement.status,
        created=False,
    )


async def _converted_result(
    session: AsyncSession, reservation: Reservation
) -> ConversionResult:
    agreement_id = reservation.converted_agreement_id
    agreement = None
    if agreement_id is not None:
        agreement = await agreement_service.get_agreement(
            session, agreement_id=agreement_id
        )
    if agreement is None:
        raise AgreementPersistenceError(
            f"Reservation {reservation.id} points at missing agreement {agreement_id}"
        )
    return _existing_result(agreement, reservation.id)


async def _resolve_lost_race(
    session: AsyncSession, reservation_id: UUID
) -> ConversionResult:
    reservation = await _load_reservation(session, reservation_id)
    if reservation is None:
        raise ReservationNotFoundError("Reservation not found")
    agreement = await agreement_service.get_agreement_for_reservation(
        session, reservation_id=reservation_id
    )
    if agreement is not None:
        logger.info(
            "Reservation %s was converted concurrently into agreement %s",
            reservation_id,
            agreement.agreement_no,
        )
        return _existing_result(agreement, reservation_id)
    _check_guard(reservation)
    raise AgreementPersistenceError(
        f"Reservation {reservation_id} changed while it was being converted"
    )


def _agreement_lines_for(
    reservation: Reservation, agreement: Agreement
) -> list[AgreementLine]:
    if not reservation.lines:
        return [
            AgreementLine(
                agreement_id=agreement.id,
                vehicle_id=reservation.vehicle_id,
                check_out_at=reservation.start_at,
                check_in_at=reservation.end_at,
                line_net=reservation.net_amount,
                line_total=reservation.total_amount,
            )
        ]
    return [
        AgreementLine(
            agreement_id=agreement.id,
            vehicle_id=line.vehicle_id or reservation.vehicle_id,
            check_out_at=line.check_out_at,
            check_in_at=line.check_in_at,
            line_net=line.line_net_price,
            line_total=line.line_net_price + line.tax_value,
        )
        for line in reservation.lines
    ]


async def _insert_agreement_lines(
    session: AsyncSession, reservation: Reservation, agreement: Agreement
) -> None:
    session.add_all(_agreement_lines_for(reservation, agreement))
    await session.flush()


async def _insert_agreement(
    session: AsyncSession, reservation: Reservation, agreement_no: str
) -> Agreement:
    agreement = Agreement(
        agreement_no=agreement_no,
        reservation_id=reservation.id,
        customer_id=reservation.customer_id,
        vehicle_id=reservation.vehicle_id,
        agreement_date=datetime.now(UTC).date(),
        checkout_at=reservation.start_at,
        return_at=reservation.end_at,
        total_amount=reservation.total_amount,
        status=AgreementStatus.ACTIVE,
        notes=reservation.notes,
    )
    session.add(agreement)
    await session.flush()
    return agreement


async def _claim_reservation(
    session: AsyncSession,
    reservation_id: UUID,
    agreement_id: UUID,
    expected_total: Decimal,
) -> bool:
    result = await session.execute(
        update(Reservation)
        .where(
            Reservation.id == reservation_id,
            Reservation.converted_agreement_id.is_(None),
            Reservation.total_amount == expected_total,
            Reservation.status == ReservationStatus.CONFIRMED,
            Reservation.down_payment_status == DownPaymentStatus.PAID,
        )
        .values(
            status=ReservationStatus.COMPLETED,
            converted_agreement_id=agreement_id,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def convert_reservation_to_agreement(
    session: AsyncSession,
    *,
    reservation_id: UUID,
) -> ConversionResult:
    """Convert a reservation into an agreement, at most once.

    Raises :class:`ReservationNotFoundError`,
    :class:`InvalidReservationStateError` or
    :class:`DownPaymentIncompleteError` for reservations that do not qualify,
    :class:`AgreementNumberError` when no number can be allocated and
    :class:`AgreementPersistenceError` when the agreement cannot be stored.
    A failed agreement-line insert is reported through
    ``ConversionResult.line_warning`` and does not stop the conversion.
    """

    reservation = await _load_reservation(session, reservation_id)
    if reservation is None:
        raise ReservationNotFoundError("Reservation not found")
    if reservation.converted_agreement_id is not None:
        return await _converted_result(session, reservation)
    _check_guard(reservation)

    try:
        agreement_no = await sequence_service.next_agreement_number(session)
    except AgreementNumberError:
        await session.rollback()
        logger.exception("Agreement number allocation failed for %s", reservation_id)
        raise

    try:
        agreement = await _insert_agreement(session, reservation, agreement_no)
    except IntegrityError:
        await session.rollback()
        return await _resolve_lost_race(session, reservation_id)
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Agreement insert failed for reservation %s", reservation_id)
        raise AgreementPersistenceError("Unable to create agreement") from exc
    agreement_id = agreement.id
    agreement_status = agreement.status
    expected_total = reservation.total_amount

    line_warning: str | None = None
    try:
        async with session.begin_nested():
            await _insert_agreement_lines(session, reservation, agreement)
    except SQLAlchemyError as exc:
        line_warning = "Agreement lines could not be created"
        logger.warning(
            "Agreement %s created without lines for reservation %s: %s",
            agreement_no,
            reservation_id,
            exc,
        )

    try:
        claimed = await _claim_reservation(
            session, reservation_id, agreement_id, expected_total
        )
        if not claimed:
            await session.rollback()
            return await _resolve_lost_race(session, reservation_id)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return await _resolve_lost_race(session, reservation_id)
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Conversion commit failed for reservation %s", reservation_id)
        raise AgreementPersistenceError("Unable to complete conversion") from exc

    logger.info(
        "Converted reservation %s into agreement %s",
        reservation_id,
        agreement_no,
    )
    return ConversionResult(
        agreement_id=agreement_id,
        agreement_no=agreement_no,
        reservation_id=reservation_id,
        status=agreement_status,
        created=True,
        line_warning=line_warning,
    )


async def ensure_agreement_line(
    session: AsyncSession,
    *,
    agreement_id: UUID,
) -> Agreement:
    """Create the agreement lines a conversion could not write.

    Does nothing when the agreement already has lines.
    """

    agreement = await agreement_service.get_agreement(session, agreement_id=agreement_id)
    if agreement is None:
        raise ValueError("Agreement not found")
    if agreement.lines:
        return agreement
    if agreement.reservation_id is None:
        raise ValueError("Agreement has no originating reservation")
    reservation = await _load_reservation(session, agreement.reservation_id)
    if reservation is None:
        raise ValueError("Originating reservation not found")

    await _insert_agreement_lines(session, reservation, agreement)
    await session.commit()
    logger.info("Backfilled lines for agreement %s", agreement.agreement_no)
    refreshed = await agreement_service.get_agreement(session, agreement_id=agreement_id)
    if refreshed is None:
        raise AgreementPersistenceError(
            f"Agreement {agreement_id} disappeared after backfill"
        )
    return refreshed
