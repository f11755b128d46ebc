"""Pricing-related API endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentops.api import deps
from rentops.schemas.pricing import (
    LinePriceRead,
    LinePriceRequest,
    PaymentScheduleRead,
    PricingContextRead,
    PricingContextRequest,
    SummaryRead,
    SummaryRequest,
)
from rentops.services import pricing_service, rate_service, summary_service

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post(
    "/context", response_model=PricingContextRead, summary="Resolve a pricing context"
)
async def resolve_pricing_context(payload: PricingContextRequest) -> PricingContextRead:
    context = rate_service.build_context(**payload.model_dump())
    return PricingContextRead.model_validate(context)


@router.post("/line-price", response_model=LinePriceRead, summary="Price a single line")
async def resolve_line_price(
    payload: LinePriceRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> LinePriceRead:
    context = rate_service.build_context(
        price_list_id=payload.price_list_code,
        promo_code=payload.promo_code,
        **(payload.rates.model_dump() if payload.rates else {}),
    )
    if payload.fallback is not None:
        fallback = rate_service.FallbackRates.from_values(**payload.fallback.model_dump())
    else:
        fallback = await pricing_service.get_fallback_rates(
            session, payload.price_list_code
        )
    priced = rate_service.resolve_line_price(
        context, payload.check_out_at, payload.check_in_at, fallback
    )
    return LinePriceRead(
        line_net_price=priced.line_net_price,
        source=priced.source.value if priced.source else None,
        bucket=priced.bucket.value,
        multiplier=priced.multiplier,
        rate=priced.rate,
    )


@router.post("/summary", response_model=SummaryRead, summary="Compute booking totals")
async def compute_summary(
    payload: SummaryRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SummaryRead:
    catalog = await pricing_service.load_charge_catalog(session)
    summary = summary_service.compute_summary(
        payload.lines,
        payload.selected_charge_ids,
        catalog,
        promo_code=payload.promo_code,
        discount_value=payload.discount_value,
        pre_adjustment=payload.pre_adjustment,
        advance_payment=payload.advance_payment,
        security_deposit_paid=payload.security_deposit_paid,
        cancellation_charges=payload.cancellation_charges,
    )
    schedule = None
    if payload.payment_terms is not None:
        as_of = payload.as_of or datetime.now(UTC).date()
        schedule = PaymentScheduleRead.model_validate(
            summary_service.payment_terms_for(
                summary.grand_total, payload.payment_terms, as_of
            )
        )
    return SummaryRead(**summary.to_dict(), payment_schedule=schedule)


@router.get(
    "/reservations/{reservation_id}/summary",
    response_model=SummaryRead,
    summary="Recompute the totals of a stored reservation",
)
async def quote_reservation(
    reservation_id: UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SummaryRead:
    try:
        summary = await pricing_service.quote_reservation(
            session, reservation_id=reservation_id
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return SummaryRead(**summary.to_dict(), reservation_id=reservation_id)
