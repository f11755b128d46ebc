"""Rental agreement endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentops.api import deps
from rentops.models.agreement import AgreementStatus
from rentops.schemas.agreement import AgreementRead
from rentops.services import agreement_service, conversion_service

router = APIRouter()


@router.get("", response_model=list[AgreementRead], summary="List agreements")
async def list_agreements(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    status_filter: Annotated[AgreementStatus | None, Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[AgreementRead]:
    agreements = await agreement_service.list_agreements(
        session, status=status_filter, skip=skip, limit=min(limit, 100)
    )
    return [AgreementRead.model_validate(obj) for obj in agreements]


@router.get("/{agreement_id}", response_model=AgreementRead, summary="Get agreement")
async def get_agreement(
    agreement_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> AgreementRead:
    agreement = await agreement_service.get_agreement(session, agreement_id=agreement_id)
    if agreement is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found"
        )
    return AgreementRead.model_validate(agreement)


@router.post(
    "/{agreement_id}/lines",
    response_model=AgreementRead,
    summary="Create missing agreement lines",
)
async def ensure_agreement_lines(
    agreement_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> AgreementRead:
    existing = await agreement_service.get_agreement(session, agreement_id=agreement_id)
    if existing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found"
        )
    try:
        agreement = await conversion_service.ensure_agreement_line(
            session, agreement_id=agreement_id
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except (SQLAlchemyError, conversion_service.AgreementPersistenceError) as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Agreement lines could not be created; try again later",
        ) from exc
    return AgreementRead.model_validate(agreement)
