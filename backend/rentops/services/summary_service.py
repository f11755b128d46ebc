"""Financial rollup of priced reservation lines into a booking summary."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from rentops.services.rate_service import to_decimal_or_none

SUMMARY_PLACES = Decimal("0.0001")
_ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class Summary:
    """Derived totals for a booking, each rounded to four places."""

    base_rate: Decimal
    promotion: Decimal
    final_base_rate: Decimal
    misc_taxable: Decimal
    misc_non_taxable: Decimal
    pre_adjustment: Decimal
    pre_subtotal: Decimal
    discount_on_subtotal: Decimal
    subtotal: Decimal
    tax_total: Decimal
    estimated_total: Decimal
    grand_total: Decimal
    advance_paid: Decimal
    balance_due: Decimal
    cancellation_fee: Decimal
    security_deposit_paid: Decimal

    def to_dict(self) -> dict[str, str]:
        """Serialize the summary to plain strings for responses."""

        return {field.name: _to_str(getattr(self, field.name)) for field in fields(self)}


class PaymentTerms(str, enum.Enum):
    """Supported payment terms."""

    PREPAID = "prepaid"
    COD = "cod"
    NET15 = "net15"
    NET30 = "net30"


@dataclass(frozen=True, slots=True)
class PaymentSchedule:
    """When payment falls due and how much must be collected up front."""

    terms: PaymentTerms
    due_date: date
    minimum_payment_due: Decimal


_NET_TERMS: dict[PaymentTerms, int] = {
    PaymentTerms.NET15: 15,
    PaymentTerms.NET30: 30,
}
_NET_MINIMUM_SHARE = Decimal("0.2")


def _round(value: Decimal) -> Decimal:
    return value.quantize(SUMMARY_PLACES, rounding=ROUND_HALF_UP)


def _to_str(value: Decimal) -> str:
    return f"{_round(value):.4f}"


def _amount(value: Any) -> Decimal:
    parsed = to_decimal_or_none(value)
    return _ZERO if parsed is None else parsed


def _line_value(line: Any, name: str) -> Decimal:
    if isinstance(line, Mapping):
        return _amount(line.get(name))
    return _amount(getattr(line, name, None))


def blended_tax_rate(tax_on_lines: Decimal, base_rate: Decimal) -> Decimal:
    """Average effective tax rate of the lines, ``0`` when nothing is priced."""

    if base_rate == 0:
        return _ZERO
    return tax_on_lines / base_rate


def _partition_charges(
    selected_charge_ids: Iterable[str],
    charge_catalog: Mapping[str, Any],
) -> tuple[Decimal, Decimal]:
    selected = set(selected_charge_ids or ())
    taxable = _ZERO
    non_taxable = _ZERO
    for charge_id, charge in charge_catalog.items():
        if charge_id not in selected:
            continue
        amount = _line_value(charge, "amount")
        is_taxable = (
            charge.get("taxable") if isinstance(charge, Mapping) else charge.taxable
        )
        if is_taxable:
            taxable += amount
        else:
            non_taxable += amount
    return taxable, non_taxable


def compute_summary(
    lines: Iterable[Any],
    selected_charge_ids: Iterable[str],
    charge_catalog: Mapping[str, Any],
    *,
    promo_code: str | None = None,
    discount_value: Any = None,
    pre_adjustment: Any = None,
    advance_payment: Any = None,
    security_deposit_paid: Any = None,
    cancellation_charges: Any = None,
) -> Summary:
    """Roll priced lines and selected charges up into a :class:`Summary`.

    ``lines`` are objects or mappings exposing ``line_net_price`` and
    ``tax_value``. ``charge_catalog`` maps a charge id to something with
    ``amount`` and ``taxable``. Misc taxable charges are taxed at the lines'
    blended rate rather than a rate of their own. The balance is clamped at
    zero, so overpayment is not reported.
    """

    line_list = list(lines or ())
    base_rate = sum((_line_value(line, "line_net_price") for line in line_list), _ZERO)
    tax_on_lines = sum((_line_value(line, "tax_value") for line in line_list), _ZERO)

    has_promo = bool(promo_code and str(promo_code).strip())
    promotion = _ZERO - _amount(discount_value) if has_promo else _ZERO
    final_base_rate = base_rate + promotion

    misc_taxable, misc_non_taxable = _partition_charges(
        selected_charge_ids, charge_catalog
    )
    tax_on_misc_taxable = misc_taxable * blended_tax_rate(tax_on_lines, base_rate)

    pre_adj = _amount(pre_adjustment)
    pre_subtotal = final_base_rate + misc_taxable + misc_non_taxable + pre_adj
    # Document-level discount has no input yet.
    discount_on_subtotal = _ZERO
    subtotal = pre_subtotal + discount_on_subtotal
    tax_total = tax_on_lines + tax_on_misc_taxable
    estimated_total = subtotal + tax_total

    cancellation_fee = _amount(cancellation_charges)
    grand_total = estimated_total + cancellation_fee

    advance_paid = _amount(advance_payment)
    deposit_paid = _amount(security_deposit_paid)
    balance_due = max(grand_total - advance_paid - deposit_paid, _ZERO)

    return Summary(
        base_rate=_round(base_rate),
        promotion=_round(promotion),
        final_base_rate=_round(final_base_rate),
        misc_taxable=_round(misc_taxable),
        misc_non_taxable=_round(misc_non_taxable),
        pre_adjustment=_round(pre_adj),
        pre_subtotal=_round(pre_subtotal),
        discount_on_subtotal=_round(discount_on_subtotal),
        subtotal=_round(subtotal),
        tax_total=_round(tax_total),
        estimated_total=_round(estimated_total),
        grand_total=_round(grand_total),
        advance_paid=_round(advance_paid),
        balance_due=_round(balance_due),
        cancellation_fee=_round(cancellation_fee),
        security_deposit_paid=_round(deposit_paid),
    )


def payment_terms_for(
    grand_total: Decimal,
    terms: PaymentTerms | str,
    as_of: date,
) -> PaymentSchedule:
    """Derive the due date and minimum up-front payment for ``terms``.

    Prepaid and cash-on-delivery bookings owe the full total on ``as_of``.
    Net terms owe 20% up front and the rest 15 or 30 days later. Unknown
    terms fall back to prepaid.
    """

    try:
        resolved = PaymentTerms(terms)
    except ValueError:
        resolved = PaymentTerms.PREPAID

    total = _amount(grand_total)
    net_days = _NET_TERMS.get(resolved)
    if net_days is None:
        return PaymentSchedule(
            terms=resolved,
            due_date=as_of,
            minimum_payment_due=_round(max(total, _ZERO)),
        )
    return PaymentSchedule(
        terms=resolved,
        due_date=as_of + timedelta(days=net_days),
        minimum_payment_due=_round(max(total * _NET_MINIMUM_SHARE, _ZERO)),
    )
