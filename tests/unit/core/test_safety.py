"""Tests for log redaction helpers."""

from __future__ import annotations

from promptcast.core.safety import mask_pii, scrub_for_logging


def test_mask_pii_redacts_contacts_and_keys() -> None:
    text = "mail jose@example.com or call +1 555 123 4567 with key sk-abcdefghijklmnopqrstuvwx"

    masked = mask_pii(text)

    assert "jose@example.com" not in masked
    assert "555 123 4567" not in masked
    assert "sk-abcdefghijklmnopqrstuvwx" not in masked
    assert masked.count("[redacted]") == 3


def test_mask_pii_truncates_long_text() -> None:
    masked = mask_pii("a" * 20, max_length=5)

    assert masked == "aaaaa…"


def test_scrub_for_logging_walks_nested_structures() -> None:
    payload = {"messages": [{"role": "user", "content": "reach me at jose@example.com"}], "count": 2}

    scrubbed = scrub_for_logging(payload)

    assert scrubbed["messages"][0]["content"] == "reach me at [redacted]"
    assert scrubbed["count"] == 2
