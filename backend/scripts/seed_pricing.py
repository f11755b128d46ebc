"""Seed demo price lists and misc charges."""

from __future__ import annotations

import asyncio
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentops.db.session import get_sessionmaker
from rentops.models import MiscCharge, PriceList

# code: (name, hourly, daily, weekly, monthly, km charge, daily km allowed)
PRICE_LISTS: dict[str, tuple[str, str, str, str, str, str, str]] = {
    "standard": ("Standard", "50", "150", "900", "3500", "0.5", "150"),
    "premium": ("Premium", "75", "200", "1200", "4500", "0.4", "200"),
    "luxury": ("Luxury", "120", "350", "2100", "7500", "0.3", "250"),
    "corporate": ("Corporate", "45", "130", "800", "3000", "0.6", "100"),
    "seasonal": ("Seasonal", "40", "120", "700", "2800", "0.5", "150"),
}

# code: (name, amount, taxable)
MISC_CHARGES: dict[str, tuple[str, str, bool]] = {
    "insurance": ("Insurance", "750", True),
    "gps": ("GPS Navigation", "450", True),
    "cleaning": ("Cleaning Fee", "900", False),
    "fuel": ("Fuel Charge", "1500", True),
    "delivery": ("Delivery Charge", "600", False),
}


async def seed_pricing(session: AsyncSession) -> tuple[int, int]:
    """Insert any missing price lists and charges; return how many were added."""
    existing_lists = set(
        (await session.execute(select(PriceList.code))).scalars().all()
    )
    existing_charges = set(
        (await session.execute(select(MiscCharge.code))).scalars().all()
    )

    lists_created = 0
    for code, (name, hourly, daily, weekly, monthly, km, km_allowed) in PRICE_LISTS.items():
        if code in existing_lists:
            continue
        session.add(
            PriceList(
                code=code,
                name=name,
                hourly_rate=Decimal(hourly),
                daily_rate=Decimal(daily),
                weekly_rate=Decimal(weekly),
                monthly_rate=Decimal(monthly),
                kilometer_charge=Decimal(km),
                daily_km_allowed=Decimal(km_allowed),
            )
        )
        lists_created += 1

    charges_created = 0
    for code, (name, amount, taxable) in MISC_CHARGES.items():
        if code in existing_charges:
            continue
        session.add(
            MiscCharge(code=code, name=name, amount=Decimal(amount), taxable=taxable)
        )
        charges_created += 1

    if lists_created or charges_created:
        await session.commit()
    return lists_created, charges_created


async def _seed_async() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        lists_created, charges_created = await seed_pricing(session)
    print(
        f"Seeded {lists_created} price list(s) and {charges_created} misc charge(s)."
    )


def main() -> None:
    asyncio.run(_seed_async())


if __name__ == "__main__":
    main()
