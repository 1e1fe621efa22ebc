"""Deterministic validators and sanitizers used by services before writes."""

from __future__ import annotations

import html
import re
from datetime import date, datetime
from typing import Any

from app.core.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def empty_to_none(value: Any, max_len: int = 20000) -> str | None:
    """Blank strings are stored as NULL."""
    cleaned = sanitize_text(value, max_len=max_len)
    return cleaned or None


def escape_html(value: str | None, max_len: int = 20000) -> str:
    """Escape user content before embedding it in HTML e-mail bodies."""
    return html.escape(sanitize_text(value, max_len=max_len))


def require_text(value: str | None, field_name: str, max_len: int = 500) -> str:
    cleaned = sanitize_text(value, max_len=max_len)
    if not cleaned:
        raise ValidationError(f"{field_name} is required.")
    return cleaned


def is_valid_email(value: str | None) -> bool:
    if not value:
        return False
    return bool(EMAIL_PATTERN.match(value.strip()))


def optional_email(value: str | None, field_name: str) -> str | None:
    cleaned = empty_to_none(value, max_len=320)
    if cleaned is not None and not is_valid_email(cleaned):
        raise ValidationError(f"{field_name} must be a valid e-mail address.")
    return cleaned


def parse_optional_date(value: Any, field_name: str) -> date | None:
    """Accept dates, datetimes and ISO ``YYYY-MM-DD`` strings; blanks become None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = sanitize_text(str(value), max_len=40)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD).") from exc
