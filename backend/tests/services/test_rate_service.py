"""Tests for pricing context construction and line price resolution."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from rentops.services import rate_service
from rentops.services.rate_service import FallbackRates, PriceSource, RateBucket

START = datetime(2026, 1, 1, 8, tzinfo=UTC)

ALL_RATES = {
    "hourly": "10",
    "daily": "100",
    "weekly": "600",
    "monthly": "2000",
}


def _context(**rates):
    return rate_service.build_context(price_list_id="standard", **rates)


def test_build_context_normalises_unusable_amounts() -> None:
    context = rate_service.build_context(
        price_list_id="  standard ",
        promo_code="   ",
        hourly=0,
        daily="-5",
        weekly="abc",
        monthly="",
        kilometer_charge=0.5,
        daily_km_allowed=None,
    )
    assert context.price_list_id == "standard"
    assert context.promo_code is None
    assert context.lock_rates_on_promo is False
    assert context.hourly is None
    assert context.daily is None
    assert context.weekly is None
    assert context.monthly is None
    assert context.kilometer_charge == Decimal("0.5")
    assert context.daily_km_allowed is None
    assert context.prefer_panel_rates is True


def test_build_context_accepts_anything() -> None:
    context = rate_service.build_context(
        price_list_id=None,
        hourly=float("nan"),
        daily=True,
        weekly=object(),
        monthly=float("inf"),
    )
    assert context.price_list_id == ""
    assert context.rate_for(RateBucket.HOURLY) is None
    assert context.rate_for(RateBucket.DAILY) is None
    assert context.rate_for(RateBucket.WEEKLY) is None
    assert context.rate_for(RateBucket.MONTHLY) is None


def test_promo_code_locks_rates_without_changing_price() -> None:
    plain = _context(**ALL_RATES)
    promo = rate_service.build_context(
        price_list_id="standard", promo_code=" SUMMER10 ", **ALL_RATES
    )
    assert promo.promo_code == "SUMMER10"
    assert promo.lock_rates_on_promo is True

    end = START + timedelta(days=3)
    assert (
        rate_service.resolve_line_price(promo, START, end).line_net_price
        == rate_service.resolve_line_price(plain, START, end).line_net_price
    )


def test_context_is_hashable() -> None:
    assert hash(_context(**ALL_RATES)) == hash(_context(**ALL_RATES))


def test_elapsed_hours_rounds_up() -> None:
    assert rate_service.elapsed_hours(START, START + timedelta(minutes=1)) == 1
    assert rate_service.elapsed_hours(START, START + timedelta(hours=5)) == 5
    assert rate_service.elapsed_hours(START, START + timedelta(hours=5, seconds=1)) == 6
    assert rate_service.elapsed_hours(START, START) == 0
    assert rate_service.elapsed_hours(START, START - timedelta(hours=2)) == 0


def test_elapsed_days_rounds_up() -> None:
    assert rate_service.elapsed_days(0) == 0
    assert rate_service.elapsed_days(1) == 1
    assert rate_service.elapsed_days(24) == 1
    assert rate_service.elapsed_days(25) == 2


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive_start = START.replace(tzinfo=None)
    assert rate_service.elapsed_hours(naive_start, START + timedelta(hours=3)) == 3


@pytest.mark.parametrize(
    ("days", "bucket", "multiplier"),
    [
        (1, RateBucket.DAILY, 1),
        (6, RateBucket.DAILY, 6),
        (7, RateBucket.WEEKLY, 1),
        (8, RateBucket.WEEKLY, 2),
        (22, RateBucket.WEEKLY, 4),
        (28, RateBucket.WEEKLY, 4),
        (29, RateBucket.DAILY, 29),
        (30, RateBucket.MONTHLY, 1),
        (31, RateBucket.MONTHLY, 2),
    ],
)
def test_bucket_selection(days: int, bucket: RateBucket, multiplier: int) -> None:
    hours = days * 24
    assert rate_service.select_bucket(hours, days) == (bucket, multiplier)


def test_twenty_nine_days_is_priced_daily() -> None:
    priced = rate_service.resolve_line_price(
        _context(**ALL_RATES), START, START + timedelta(days=29)
    )
    assert priced.bucket == RateBucket.DAILY
    assert priced.multiplier == 29
    assert priced.line_net_price == Decimal("2900.0000")


def test_thirty_and_thirty_one_days_are_priced_monthly() -> None:
    context = _context(**ALL_RATES)
    thirty = rate_service.resolve_line_price(context, START, START + timedelta(days=30))
    thirty_one = rate_service.resolve_line_price(
        context, START, START + timedelta(days=31)
    )
    assert (thirty.bucket, thirty.multiplier) == (RateBucket.MONTHLY, 1)
    assert thirty.line_net_price == Decimal("2000.0000")
    assert (thirty_one.bucket, thirty_one.multiplier) == (RateBucket.MONTHLY, 2)
    assert thirty_one.line_net_price == Decimal("4000.0000")


def test_partial_day_rounds_up_to_a_full_day() -> None:
    priced = rate_service.resolve_line_price(
        _context(**ALL_RATES), START, START + timedelta(hours=3)
    )
    assert priced.bucket == RateBucket.DAILY
    assert priced.multiplier == 1
    assert priced.line_net_price == Decimal("100.0000")


def test_zero_duration_prices_at_zero() -> None:
    priced = rate_service.resolve_line_price(_context(**ALL_RATES), START, START)
    assert priced.bucket == RateBucket.HOURLY
    assert priced.multiplier == 0
    assert priced.line_net_price == Decimal("0")


def test_panel_rate_beats_price_list() -> None:
    priced = rate_service.resolve_line_price(
        _context(daily="120"),
        START,
        START + timedelta(days=2),
        FallbackRates.from_values(daily=Decimal("150")),
    )
    assert priced.source == PriceSource.PANEL
    assert priced.rate == Decimal("120")
    assert priced.line_net_price == Decimal("240.0000")


def test_price_list_used_when_panel_is_blank() -> None:
    priced = rate_service.resolve_line_price(
        _context(daily=""),
        START,
        START + timedelta(days=2),
        {"daily": "150", "weekly": "900"},
    )
    assert priced.source == PriceSource.PRICELIST
    assert priced.line_net_price == Decimal("300.0000")


def test_price_list_preferred_when_panel_precedence_is_off() -> None:
    context = rate_service.build_context(
        price_list_id="standard", daily="120", prefer_panel_rates=False
    )
    priced = rate_service.resolve_line_price(
        context, START, START + timedelta(days=1), FallbackRates(daily=Decimal("150"))
    )
    assert priced.source == PriceSource.PRICELIST
    assert priced.line_net_price == Decimal("150.0000")


def test_missing_bucket_rate_prices_at_zero() -> None:
    priced = rate_service.resolve_line_price(
        _context(hourly="10"), START, START + timedelta(days=40)
    )
    assert priced.bucket == RateBucket.MONTHLY
    assert priced.source is None
    assert priced.rate is None
    assert priced.line_net_price == Decimal("0")


def test_missing_rate_policy_is_zero() -> None:
    for bucket in RateBucket:
        assert rate_service.missing_rate_price(bucket) == Decimal("0")


def test_fractional_rates_round_half_up() -> None:
    priced = rate_service.resolve_line_price(
        _context(daily="33.33335"), START, START + timedelta(days=1)
    )
    assert priced.line_net_price == Decimal("33.3334")


@dataclass
class _Line:
    check_out_at: datetime
    check_in_at: datetime
    line_net_price: Decimal = Decimal("0")
    tax_value: Decimal = Decimal("0")
    discount_value: Decimal = Decimal("7")
    price_source: str | None = None


def test_reprice_lines_updates_each_line() -> None:
    lines = [
        _Line(START, START + timedelta(days=2)),
        _Line(START, START + timedelta(days=7)),
    ]
    results = rate_service.reprice_lines(
        _context(**ALL_RATES), lines, tax_rate=Decimal("0.10")
    )

    assert [result.bucket for result in results] == [RateBucket.DAILY, RateBucket.WEEKLY]
    assert lines[0].line_net_price == Decimal("200.0000")
    assert lines[0].tax_value == Decimal("20.0000")
    assert lines[1].line_net_price == Decimal("600.0000")
    assert lines[1].tax_value == Decimal("60.0000")
    assert all(line.price_source == "panel" for line in lines)
    assert all(line.discount_value == Decimal("7") for line in lines)
