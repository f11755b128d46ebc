"""Reservation management API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentops.api import deps
from rentops.models.reservation import Reservation, ReservationStatus
from rentops.schemas.agreement import ConversionRead
from rentops.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationReprice,
    ReservationUpdate,
)
from rentops.services import conversion_service, reservation_service

router = APIRouter()


async def _get_reservation_or_404(
    session: AsyncSession, reservation_id: uuid.UUID
) -> Reservation:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    if reservation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found"
        )
    return reservation


@router.get("", response_model=list[ReservationRead], summary="List reservations")
async def list_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    status_filter: Annotated[ReservationStatus | None, Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[ReservationRead]:
    reservations = await reservation_service.list_reservations(
        session,
        status=status_filter,
        skip=skip,
        limit=min(limit, 100),
    )
    return [ReservationRead.model_validate(obj) for obj in reservations]


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
)
async def create_reservation(
    payload: ReservationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    data = payload.model_dump(exclude={"lines", "rates"})
    lines = [
        reservation_service.LineInput(**line.model_dump()) for line in payload.lines
    ]
    rates = payload.rates.model_dump() if payload.rates else None
    try:
        reservation = await reservation_service.create_reservation(
            session, lines=lines, rates=rates, **data
        )
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to create reservation",
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return ReservationRead.model_validate(reservation)


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_reservation_or_404(session, reservation_id)
    return ReservationRead.model_validate(reservation)


@router.patch(
    "/{reservation_id}", response_model=ReservationRead, summary="Update reservation"
)
async def update_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_reservation_or_404(session, reservation_id)
    try:
        updated = await reservation_service.update_status(
            session,
            reservation=reservation,
            **payload.model_dump(exclude_unset=True),
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return ReservationRead.model_validate(updated)


@router.post(
    "/{reservation_id}/reprice",
    response_model=ReservationRead,
    summary="Re-price reservation lines with new rates",
)
async def reprice_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationReprice,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_reservation_or_404(session, reservation_id)
    try:
        repriced = await reservation_service.reprice_reservation(
            session,
            reservation=reservation,
            rates=payload.rates.model_dump() if payload.rates else None,
            price_list_code=payload.price_list_code,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return ReservationRead.model_validate(repriced)


@router.post(
    "/{reservation_id}/convert",
    response_model=ConversionRead,
    summary="Convert reservation into a rental agreement",
)
async def convert_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ConversionRead:
    try:
        result = await conversion_service.convert_reservation_to_agreement(
            session, reservation_id=reservation_id
        )
    except conversion_service.ReservationNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except conversion_service.ConversionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": exc.code, "message": str(exc)},
        ) from exc
    except (
        conversion_service.AgreementNumberError,
        conversion_service.AgreementPersistenceError,
    ) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Agreement could not be created; try again later",
        ) from exc
    return ConversionRead.model_validate(result)
