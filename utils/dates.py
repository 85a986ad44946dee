"""Relative date parsing for HR command slots.

Users say things like "terminate Alex next Friday" or "start tomorrow".
Slots are normalized to YYYY-MM-DD before they reach the command engine;
anything that cannot be parsed is returned unchanged.
"""
from __future__ import annotations
import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional

from utils.time import utc_now

__all__ = ["parse_relative_date", "format_date_for_display"]

WEEKDAYS = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

_NEXT_WEEKDAY = re.compile(r"^next\s+(monday|tuesday|wednesday|thursday|friday|saturday|sunday)$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_US_DATE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")


def _add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_relative_date(value: Optional[str], today: Optional[date] = None) -> str:
    """Convert a free-form date phrase to YYYY-MM-DD.

    Empty input means today. Unrecognized input is returned as-is so the
    caller can still show the user what they typed.
    """
    today = today or utc_now().date()
    if not value:
        return today.isoformat()

    text = value.lower().strip()

    if text in ("immediately", "today", "now"):
        return today.isoformat()
    if text == "tomorrow":
        return (today + timedelta(days=1)).isoformat()

    match = _NEXT_WEEKDAY.match(text)
    if match:
        days_until = WEEKDAYS[match.group(1)] - today.weekday()
        if days_until <= 0:
            days_until += 7
        return (today + timedelta(days=days_until)).isoformat()

    if text == "next week":
        return (today + timedelta(days=7)).isoformat()
    if text == "next month":
        return _add_months(today, 1).isoformat()

    if text in ("end of week", "end of the week"):
        days_until_friday = (WEEKDAYS["friday"] - today.weekday()) % 7 or 7
        return (today + timedelta(days=days_until_friday)).isoformat()

    if text in ("end of month", "end of the month"):
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=last_day).isoformat()

    match = _ISO_DATE.match(text)
    if match:
        parsed = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if parsed:
            return parsed.isoformat()

    match = _US_DATE.match(text)
    if match:
        parsed = _safe_date(int(match.group(3)), int(match.group(1)), int(match.group(2)))
        if parsed:
            return parsed.isoformat()

    return value


def format_date_for_display(value: str) -> str:
    """Render YYYY-MM-DD as e.g. 'Friday, August 30, 2024'."""
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return value
    return f"{parsed.strftime('%A, %B')} {parsed.day}, {parsed.year}"
