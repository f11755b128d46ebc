"""Rate resolution: pricing context construction and per-line bucket pricing.

Everything here is pure. Operator input is normalised into a
:class:`PricingContext`, and a line's net price is resolved from the elapsed
duration by picking exactly one rate bucket (monthly, weekly, daily or
hourly) and multiplying its rate.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

RATE_PLACES = Decimal("0.0001")
_ONE_HOUR = timedelta(hours=1)
_DAYS_PER_WEEK = 7
_DAYS_PER_MONTH = 30


class RateBucket(str, enum.Enum):
    """Time unit a line is priced in."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PriceSource(str, enum.Enum):
    """Where the applied bucket rate came from."""

    PANEL = "panel"
    PRICELIST = "pricelist"


@dataclass(frozen=True, slots=True)
class FallbackRates:
    """Bucket rates taken from a price list."""

    hourly: Decimal | None = None
    daily: Decimal | None = None
    weekly: Decimal | None = None
    monthly: Decimal | None = None

    @classmethod
    def from_values(
        cls,
        *,
        hourly: Any = None,
        daily: Any = None,
        weekly: Any = None,
        monthly: Any = None,
    ) -> FallbackRates:
        return cls(
            hourly=positive_or_none(hourly),
            daily=positive_or_none(daily),
            weekly=positive_or_none(weekly),
            monthly=positive_or_none(monthly),
        )

    def rate_for(self, bucket: RateBucket) -> Decimal | None:
        return getattr(self, bucket.value)


@dataclass(frozen=True, slots=True)
class PricingContext:
    """Resolved pricing policy for one booking attempt."""

    price_list_id: str
    promo_code: str | None
    hourly: Decimal | None
    daily: Decimal | None
    weekly: Decimal | None
    monthly: Decimal | None
    kilometer_charge: Decimal | None
    daily_km_allowed: Decimal | None
    lock_rates_on_promo: bool
    prefer_panel_rates: bool = True

    def rate_for(self, bucket: RateBucket) -> Decimal | None:
        return getattr(self, bucket.value)


@dataclass(frozen=True, slots=True)
class LinePrice:
    """Outcome of pricing a single line."""

    line_net_price: Decimal
    source: PriceSource | None
    bucket: RateBucket
    multiplier: int
    rate: Decimal | None


def to_decimal_or_none(value: Any) -> Decimal | None:
    """Parse loosely typed numeric input, returning ``None`` when unusable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    elif isinstance(value, int):
        candidate = Decimal(value)
    elif isinstance(value, float):
        candidate = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not candidate.is_finite():
        return None
    return candidate


def positive_or_none(value: Any) -> Decimal | None:
    """Treat zero, negative and unparsable amounts as not provided."""

    candidate = to_decimal_or_none(value)
    if candidate is None or candidate <= 0:
        return None
    return candidate


def _normalize_code(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_context(
    *,
    price_list_id: Any,
    promo_code: Any = None,
    hourly: Any = None,
    daily: Any = None,
    weekly: Any = None,
    monthly: Any = None,
    kilometer_charge: Any = None,
    daily_km_allowed: Any = None,
    prefer_panel_rates: bool = True,
) -> PricingContext:
    """Build a :class:`PricingContext` from raw operator input.

    Never raises. Amounts that are missing, non-numeric, zero or negative are
    normalised to ``None``. A non-blank promo code locks the rate fields for
    editing but does not change bucket selection.
    """

    normalized_promo = _normalize_code(promo_code)
    return PricingContext(
        price_list_id=_normalize_code(price_list_id) or "",
        promo_code=normalized_promo,
        hourly=positive_or_none(hourly),
        daily=positive_or_none(daily),
        weekly=positive_or_none(weekly),
        monthly=positive_or_none(monthly),
        kilometer_charge=positive_or_none(kilometer_charge),
        daily_km_allowed=positive_or_none(daily_km_allowed),
        lock_rates_on_promo=normalized_promo is not None,
        prefer_panel_rates=prefer_panel_rates,
    )


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def elapsed_hours(start_at: datetime, end_at: datetime) -> int:
    """Whole hours between two instants, rounded up; ``0`` if not positive."""

    delta = _coerce_utc(end_at) - _coerce_utc(start_at)
    if delta <= timedelta(0):
        return 0
    whole, remainder = divmod(delta, _ONE_HOUR)
    return whole + (1 if remainder else 0)


def elapsed_days(hours: int) -> int:
    """Whole days covering ``hours``, rounded up."""

    if hours <= 0:
        return 0
    return -(-hours // 24)


def select_bucket(hours: int, days: int) -> tuple[RateBucket, int]:
    """Pick the bucket and multiplier from elapsed duration alone.

    Weeks are only billed while the rounded-up weeks still fit in a month,
    so a 29-day span prices daily until it reaches the monthly bucket.
    """

    if days >= _DAYS_PER_MONTH:
        return RateBucket.MONTHLY, -(-days // _DAYS_PER_MONTH)
    weeks = -(-days // _DAYS_PER_WEEK)
    if days >= _DAYS_PER_WEEK and weeks * _DAYS_PER_WEEK <= _DAYS_PER_MONTH:
        return RateBucket.WEEKLY, weeks
    if days >= 1:
        return RateBucket.DAILY, days
    return RateBucket.HOURLY, hours


def missing_rate_price(bucket: RateBucket) -> Decimal:
    """Price used when the selected bucket has no rate configured.

    Zero, so an incomplete rate setup never blocks quoting. Raise from here
    instead to make missing rates fatal.
    """

    return Decimal("0")


def _coerce_fallback(
    fallback: FallbackRates | Mapping[str, Any] | None,
) -> FallbackRates | None:
    if fallback is None or isinstance(fallback, FallbackRates):
        return fallback
    return FallbackRates.from_values(
        hourly=fallback.get("hourly"),
        daily=fallback.get("daily"),
        weekly=fallback.get("weekly"),
        monthly=fallback.get("monthly"),
    )


def _pick_rate(
    context: PricingContext,
    bucket: RateBucket,
    fallback: FallbackRates | None,
) -> tuple[Decimal | None, PriceSource | None]:
    candidates = [
        (context.rate_for(bucket), PriceSource.PANEL),
        (fallback.rate_for(bucket) if fallback else None, PriceSource.PRICELIST),
    ]
    if not context.prefer_panel_rates:
        candidates.reverse()
    for rate, source in candidates:
        if rate is not None and rate > 0:
            return rate, source
    return None, None


def resolve_line_price(
    context: PricingContext,
    start_at: datetime,
    end_at: datetime,
    fallback: FallbackRates | Mapping[str, Any] | None = None,
) -> LinePrice:
    """Resolve the net price of one line for the span ``start_at``..``end_at``.

    The bucket depends only on the elapsed duration. If neither the panel nor
    the price list supplies a rate for that bucket the line is priced by
    :func:`missing_rate_price`; this function never raises.
    """

    hours = elapsed_hours(start_at, end_at)
    bucket, multiplier = select_bucket(hours, elapsed_days(hours))
    rate, source = _pick_rate(context, bucket, _coerce_fallback(fallback))
    if rate is None:
        return LinePrice(
            line_net_price=missing_rate_price(bucket),
            source=None,
            bucket=bucket,
            multiplier=multiplier,
            rate=None,
        )
    price = (rate * multiplier).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
    return LinePrice(
        line_net_price=price,
        source=source,
        bucket=bucket,
        multiplier=multiplier,
        rate=rate,
    )


def reprice_lines(
    context: PricingContext,
    lines: Iterable[Any],
    *,
    fallback: FallbackRates | Mapping[str, Any] | None = None,
    tax_rate: Decimal = Decimal("0"),
) -> list[LinePrice]:
    """Re-resolve every line in place after the rates changed.

    Each line needs ``check_out_at`` and ``check_in_at``; its
    ``line_net_price``, ``tax_value`` and ``price_source`` are overwritten.
    """

    results: list[LinePrice] = []
    for line in lines:
        priced = resolve_line_price(
            context, line.check_out_at, line.check_in_at, fallback
        )
        line.line_net_price = priced.line_net_price
        line.tax_value = (priced.line_net_price * tax_rate).quantize(
            RATE_PLACES, rounding=ROUND_HALF_UP
        )
        line.price_source = priced.source.value if priced.source else None
        results.append(priced)
    return results
