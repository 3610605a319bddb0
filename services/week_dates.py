"""Datoregler for uker: alle ukenøkler er mandagsdatoer (ISO, YYYY-MM-DD)."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional


def format_date(value: date) -> str:
    return value.isoformat()


def parse_date(value: str | None) -> Optional[date]:
    """Tolk YYYY-MM-DD (tre tall) først, deretter ISO dato/tid. None hvis ingenting passer."""
    if not value:
        return None
    text = value.strip()
    parts = text.split("-")
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        try:
            return date(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def monday_of(value: date) -> date:
    return value - timedelta(days=value.weekday())


def upcoming_monday(today: date | None = None) -> str:
    """Dagens dato hvis det er mandag, ellers neste mandag."""
    current = today or date.today()
    diff = (7 - current.weekday()) % 7
    return format_date(current + timedelta(days=diff))


def to_monday(value: str | None, today: date | None = None) -> str:
    """Flytt en dato bakover til mandagen i samme uke; ugyldig input gir kommende mandag."""
    parsed = parse_date(value)
    if parsed is None:
        return upcoming_monday(today)
    return format_date(monday_of(parsed))


def shift_week(week_start: str, direction: int, today: date | None = None) -> str:
    base = parse_date(week_start) or (today or date.today())
    return to_monday(format_date(base + timedelta(days=7 * direction)), today)


def date_for_offset(week_start: str, offset: int, today: date | None = None) -> date:
    base = parse_date(week_start) or (today or date.today())
    return base + timedelta(days=offset)


def initial_week_start(stored: str | None, weeks: Iterable[str], today: date | None = None) -> str:
    """Velg uken som vises ved oppstart.

    Lagret ukemarkør vinner (normalisert til mandag); ellers siste lagrede uke;
    ellers kommende mandag.
    """
    if stored:
        return to_monday(stored, today)
    existing = sorted(weeks)
    if existing:
        return existing[-1]
    return upcoming_monday(today)
