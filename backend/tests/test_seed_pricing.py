"""Tests for the demo pricing seed script."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import select

from rentops.db.session import get_sessionmaker
from rentops.models import MiscCharge, PriceList
from scripts.seed_pricing import MISC_CHARGES, PRICE_LISTS, seed_pricing

pytestmark = pytest.mark.asyncio


async def test_seed_is_idempotent(reset_database, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        assert await seed_pricing(session) == (len(PRICE_LISTS), len(MISC_CHARGES))
        assert await seed_pricing(session) == (0, 0)

        standard = (
            await session.execute(select(PriceList).where(PriceList.code == "standard"))
        ).scalar_one()
        assert standard.daily_rate == Decimal("150")
        assert standard.monthly_rate == Decimal("3500")

        cleaning = (
            await session.execute(select(MiscCharge).where(MiscCharge.code == "cleaning"))
        ).scalar_one()
        assert cleaning.taxable is False
        assert cleaning.amount == Decimal("900")
