"""Redaction helpers applied to prompts and raw model output before they are logged."""

from __future__ import annotations

import re
import typing
from collections.abc import Mapping, Sequence
from typing import Any

_REDACTION_PLACEHOLDER = "[redacted]"
_ELLIPSIS = "…"

_EMAIL_PATTERN = re.compile(r"(?i)\b[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}\b")
_PHONE_PATTERN = re.compile(r"\b(?:\+?\d{1,3}[ \-]?)?(?:\d[ \-]?){7,}\d\b")
_API_KEY_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_\-]{16,}\b")


def mask_pii(text: str, *, max_length: int = 512) -> str:
    """Redact e-mail addresses, phone numbers and API keys and cap the length of *text*."""
    masked = _API_KEY_PATTERN.sub(_REDACTION_PLACEHOLDER, text)
    masked = _EMAIL_PATTERN.sub(_REDACTION_PLACEHOLDER, masked)
    masked = _PHONE_PATTERN.sub(_REDACTION_PLACEHOLDER, masked)

    if max_length > 0 and len(masked) > max_length:
        return masked[:max_length] + _ELLIPSIS
    return masked


def scrub_for_logging(value: Any, *, max_length: int = 512) -> Any:
    """Return a copy of *value* with every nested string passed through :func:`mask_pii`."""
    if isinstance(value, str):
        return mask_pii(value, max_length=max_length)
    if isinstance(value, Mapping):
        mapping_items = typing.cast("Mapping[Any, Any]", value)
        return {
            key: scrub_for_logging(item, max_length=max_length)
            for key, item in mapping_items.items()
        }
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        sequence_items = typing.cast("Sequence[Any]", value)
        return [scrub_for_logging(item, max_length=max_length) for item in sequence_items]
    return value


__all__ = ["mask_pii", "scrub_for_logging"]
