"""Tests for structured logging."""

from __future__ import annotations

from polyredeem.core.logging import get_audit_logger, get_logger, log_redemption_event, mask_secret


class TestStructuredLogging:
    def test_get_logger_returns_bound_logger(self) -> None:
        assert get_logger("test.module") is not None

    def test_get_audit_logger(self) -> None:
        assert get_audit_logger() is not None

    def test_log_redemption_event_does_not_raise(self) -> None:
        log_redemption_event("submit", "0x" + "ab" * 32, via_safe=True)

    def test_log_redemption_event_with_failure(self) -> None:
        log_redemption_event("failed", "0xA", tx_hash="0xdead", error="reverted")


class TestMaskSecret:
    def test_masks_all_but_last_four(self) -> None:
        assert mask_secret("abcdefgh") == "****efgh"

    def test_short_values_fully_masked(self) -> None:
        assert mask_secret("abc") == "****"
