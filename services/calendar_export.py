"""Eksport av en ukeplan til iCalendar (heldagshendelser)."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Sequence

from models.meal import Meal
from models.week_plan import DAYS, WeekPlan
from services.week_dates import date_for_offset

ICS_FILENAME = "middag-plan.ics"
TITLE_PREFIX = "🥗 "

_PREAMBLE = [
    "BEGIN:VCALENDAR",
    "VERSION:2.0",
    "CALSCALE:GREGORIAN",
    "PRODID:-//Middag Planlegger//EN",
]


def escape_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\n")
        .replace("\n", "\\n")
    )


def _describe(meal: Meal) -> str:
    parts: List[str] = []
    ingredients = meal.ingredient_lines()
    if ingredients:
        parts.append("Ingredienser:\n" + "\n".join(f"- {item}" for item in ingredients))
    steps = meal.step_lines()
    if steps:
        parts.append("Fremgangsmåte:\n" + "\n".join(f"{i}. {step}" for i, step in enumerate(steps, start=1)))
    if meal.image_url:
        parts.append(f"Bilde: {meal.image_url}")
    return "\n".join(parts)


def build_ics(plan: WeekPlan, meals: Sequence[Meal], week_start: str) -> str:
    """Én VEVENT per (dag, rett). Slettede retter hoppes over; tom ukestart gir tom tekst."""
    if not week_start:
        return ""
    lookup = {meal.id: meal for meal in meals}
    lines = list(_PREAMBLE)
    for offset, day in enumerate(DAYS):
        for index, meal_id in enumerate(plan.get(day) or []):
            meal = lookup.get(meal_id)
            if meal is None:
                continue
            start = date_for_offset(week_start, offset)
            end = start + timedelta(days=1)
            lines.append("BEGIN:VEVENT")
            lines.append(f"UID:{meal.id}-{offset}-{index}@dinner-plan")
            lines.append(f"SUMMARY:{escape_text(TITLE_PREFIX + meal.title)}")
            description = _describe(meal)
            if description:
                lines.append(f"DESCRIPTION:{escape_text(description)}")
            lines.append(f"DTSTART;VALUE=DATE:{start.strftime('%Y%m%d')}")
            lines.append(f"DTEND;VALUE=DATE:{end.strftime('%Y%m%d')}")
            lines.append("TRANSP:TRANSPARENT")
            lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines)
