"""Tests for log redaction."""

from __future__ import annotations

import logging

from rentops.security.logging_filters import SensitiveFilter, redact


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("rentops", logging.INFO, __file__, 1, msg, args, None)


def test_bearer_tokens_are_redacted() -> None:
    assert "abc.def" not in redact("Authorization: Bearer abc.def")


def test_card_numbers_are_masked() -> None:
    masked = redact("paid with 4111 1111 1111 1111 on file")
    assert "4111" not in masked
    assert "**CARD**" in masked


def test_agreement_numbers_are_left_alone() -> None:
    assert redact("Converted into agreement AGR-000042") == (
        "Converted into agreement AGR-000042"
    )


def test_filter_scrubs_message_arguments() -> None:
    record = _record("Deposit card %s for %s", "4111-1111-1111-1111", "AGR-000001")
    assert SensitiveFilter().filter(record) is True
    assert record.getMessage() == "Deposit card **CARD** for AGR-000001"
