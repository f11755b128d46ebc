"""Tests for the booking financial rollup."""

from __future__ import annotations

from dataclasses import fields
from datetime import date
from decimal import Decimal

import pytest

from rentops.services import summary_service
from rentops.services.summary_service import PaymentTerms, Summary

LINES = [
    {"line_net_price": Decimal("500"), "tax_value": Decimal("25")},
    {"line_net_price": Decimal("300"), "tax_value": Decimal("15")},
]
CATALOG = {
    "insurance": {"amount": Decimal("25"), "taxable": True},
    "cleaning": {"amount": Decimal("30"), "taxable": False},
    "fuel": {"amount": Decimal("1500"), "taxable": True},
}


def _example_summary(**overrides) -> Summary:
    params = {
        "promo_code": "SUMMER10",
        "discount_value": Decimal("50"),
        "pre_adjustment": Decimal("0"),
        "advance_payment": Decimal("200"),
        "security_deposit_paid": Decimal("100"),
        "cancellation_charges": Decimal("0"),
    }
    params.update(overrides)
    return summary_service.compute_summary(
        LINES, ["insurance", "cleaning"], CATALOG, **params
    )


def test_worked_example() -> None:
    summary = _example_summary()

    assert summary.base_rate == Decimal("800")
    assert summary.promotion == Decimal("-50")
    assert summary.final_base_rate == Decimal("750")
    assert summary.misc_taxable == Decimal("25")
    assert summary.misc_non_taxable == Decimal("30")
    assert summary.pre_adjustment == Decimal("0")
    assert summary.pre_subtotal == Decimal("805")
    assert summary.discount_on_subtotal == Decimal("0")
    assert summary.subtotal == Decimal("805")
    assert summary.tax_total == Decimal("41.25")
    assert summary.estimated_total == Decimal("846.25")
    assert summary.grand_total == Decimal("846.25")
    assert summary.advance_paid == Decimal("200")
    assert summary.security_deposit_paid == Decimal("100")
    assert summary.balance_due == Decimal("546.25")
    assert summary.cancellation_fee == Decimal("0")


def test_blended_tax_rate() -> None:
    assert summary_service.blended_tax_rate(Decimal("40"), Decimal("800")) == Decimal(
        "0.05"
    )
    assert summary_service.blended_tax_rate(Decimal("40"), Decimal("0")) == Decimal("0")


def test_summary_is_deterministic() -> None:
    assert _example_summary() == _example_summary()
    assert _example_summary().to_dict() == _example_summary().to_dict()


def test_every_field_has_four_decimal_places() -> None:
    summary = summary_service.compute_summary(
        [{"line_net_price": "333.33333", "tax_value": "16.666665"}],
        ["insurance"],
        {"insurance": {"amount": "10.00005", "taxable": True}},
        promo_code="X",
        discount_value="0.00005",
        advance_payment="1",
    )
    for field in fields(summary):
        value = getattr(summary, field.name)
        assert value.as_tuple().exponent == -4, field.name

    rendered = summary.to_dict()
    assert len(rendered) == 16
    assert rendered["promotion"] == "-0.0001"
    assert all(len(text.split(".")[1]) == 4 for text in rendered.values())


def test_promotion_ignored_without_promo_code() -> None:
    summary = _example_summary(promo_code="  ")
    assert summary.promotion == Decimal("0")
    assert summary.to_dict()["promotion"] == "0.0000"
    assert summary.final_base_rate == Decimal("800")


def test_balance_due_never_negative() -> None:
    summary = _example_summary(
        advance_payment=Decimal("800"), security_deposit_paid=Decimal("500")
    )
    assert summary.grand_total == Decimal("846.25")
    assert summary.balance_due == Decimal("0")


def test_cancellation_is_added_after_tax() -> None:
    summary = _example_summary(cancellation_charges=Decimal("100"))
    assert summary.tax_total == Decimal("41.25")
    assert summary.estimated_total == Decimal("846.25")
    assert summary.grand_total == Decimal("946.25")
    assert summary.cancellation_fee == Decimal("100")


def test_pre_adjustment_flows_into_subtotal() -> None:
    summary = _example_summary(pre_adjustment=Decimal("-5"))
    assert summary.pre_subtotal == Decimal("800")
    assert summary.subtotal == Decimal("800")


def test_missing_inputs_count_as_zero() -> None:
    summary = summary_service.compute_summary([], [], {})
    assert all(getattr(summary, field.name) == 0 for field in fields(summary))

    loose = summary_service.compute_summary(
        [{"line_net_price": None, "tax_value": ""}, {"line_net_price": "100"}],
        ["unknown"],
        CATALOG,
        advance_payment="",
    )
    assert loose.base_rate == Decimal("100")
    assert loose.tax_total == Decimal("0")
    assert loose.misc_taxable == Decimal("0")
    assert loose.balance_due == Decimal("100")


def test_misc_taxable_untaxed_when_nothing_priced() -> None:
    summary = summary_service.compute_summary([], ["fuel"], CATALOG)
    assert summary.misc_taxable == Decimal("1500")
    assert summary.tax_total == Decimal("0")
    assert summary.grand_total == Decimal("1500")


def test_duplicate_charge_ids_count_once() -> None:
    summary = summary_service.compute_summary(
        LINES, ["insurance", "insurance", "cleaning"], CATALOG
    )
    assert summary.misc_taxable == Decimal("25")
    assert summary.misc_non_taxable == Decimal("30")


def test_accepts_objects_with_attributes() -> None:
    class _Line:
        line_net_price = Decimal("100")
        tax_value = Decimal("10")

    class _Charge:
        amount = Decimal("20")
        taxable = True

    summary = summary_service.compute_summary([_Line()], ["gps"], {"gps": _Charge()})
    assert summary.tax_total == Decimal("12")
    assert summary.grand_total == Decimal("132")


@pytest.mark.parametrize(
    ("terms", "due", "minimum"),
    [
        (PaymentTerms.PREPAID, date(2026, 5, 1), Decimal("846.25")),
        ("cod", date(2026, 5, 1), Decimal("846.25")),
        (PaymentTerms.NET15, date(2026, 5, 16), Decimal("169.25")),
        ("net30", date(2026, 5, 31), Decimal("169.25")),
        ("barter", date(2026, 5, 1), Decimal("846.25")),
    ],
)
def test_payment_terms(terms, due: date, minimum: Decimal) -> None:
    schedule = summary_service.payment_terms_for(
        Decimal("846.25"), terms, date(2026, 5, 1)
    )
    assert schedule.due_date == due
    assert schedule.minimum_payment_due == minimum
