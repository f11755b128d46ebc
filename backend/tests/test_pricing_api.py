"""Pricing endpoint tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_context_endpoint_normalises_input(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/context",
        json={
            "price_list_id": "premium",
            "promo_code": "SPRING",
            "hourly": 0,
            "daily": "180",
            "weekly": "n/a",
            "monthly": -1,
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["price_list_id"] == "premium"
    assert body["lock_rates_on_promo"] is True
    assert body["hourly"] is None
    assert Decimal(body["daily"]) == Decimal("180")
    assert body["weekly"] is None
    assert body["monthly"] is None
    assert body["prefer_panel_rates"] is True


async def test_line_price_from_stored_price_list(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/line-price",
        json={
            "check_out_at": "2026-06-01T09:00:00Z",
            "check_in_at": "2026-07-01T09:00:00Z",
            "price_list_code": "luxury",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["bucket"] == "monthly"
    assert body["multiplier"] == 1
    assert body["source"] == "pricelist"
    assert Decimal(body["line_net_price"]) == Decimal("7500")


async def test_line_price_prefers_panel_over_explicit_fallback(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/line-price",
        json={
            "check_out_at": "2026-06-01T09:00:00Z",
            "check_in_at": "2026-06-09T09:00:00Z",
            "rates": {"weekly": 500},
            "fallback": {"weekly": "900", "daily": "150"},
        },
    )
    body = response.json()
    assert body["bucket"] == "weekly"
    assert body["multiplier"] == 2
    assert body["source"] == "panel"
    assert Decimal(body["line_net_price"]) == Decimal("1000")


async def test_line_price_without_rate_is_zero(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/line-price",
        json={
            "check_out_at": "2026-06-01T09:00:00Z",
            "check_in_at": "2026-07-11T09:00:00Z",
            "rates": {"hourly": "10"},
        },
    )
    body = response.json()
    assert body["bucket"] == "monthly"
    assert body["source"] is None
    assert Decimal(body["line_net_price"]) == Decimal("0")


async def test_summary_endpoint(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/summary",
        json={
            "lines": [
                {"line_net_price": "500", "tax_value": "25"},
                {"line_net_price": "300", "tax_value": "15"},
            ],
            "selected_charge_ids": ["gps", "delivery", "unknown"],
            "promo_code": "SUMMER10",
            "discount_value": "50",
            "advance_payment": "200",
            "security_deposit_paid": "100",
            "payment_terms": "net30",
            "as_of": "2026-05-01",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["misc_taxable"]) == Decimal("450")
    assert Decimal(body["misc_non_taxable"]) == Decimal("600")
    # 40 line tax plus 450 * 0.05
    assert Decimal(body["tax_total"]) == Decimal("62.5")
    assert Decimal(body["grand_total"]) == Decimal("1862.5")
    assert Decimal(body["balance_due"]) == Decimal("1562.5")
    assert body["payment_schedule"]["due_date"] == "2026-05-31"
    assert Decimal(body["payment_schedule"]["minimum_payment_due"]) == Decimal("372.5")


async def test_summary_for_unknown_reservation(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.get(
        "/api/v1/pricing/reservations/00000000-0000-0000-0000-000000000000/summary"
    )
    assert response.status_code == 404
