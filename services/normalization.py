"""Normalisering av lagrede data til gjeldende skjema (WeeklyPlans/WeekPlan).

Hver variant av StorageSnapshot har sin egen funksjon. merge_snapshots legger
dem sammen i fast rekkefølge: gjeldende skjema først, gammel enkeltplan sist,
slik at gammel plan overskriver ved kollisjon på samme mandag.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, Iterable

from core.database import SERVER_TIMESTAMP
from models.snapshot import (
    CurrentPlansSnapshot,
    LegacySinglePlanSnapshot,
    LegacyTopLevelMealsSnapshot,
)
from models.week_plan import DAYS, WeekPlan, WeeklyPlans, empty_plan
from services.week_dates import to_monday, upcoming_monday

logger = logging.getLogger(__name__)


def parse_json(raw: str | None) -> Any:
    """Tolk lagret tekst; ødelagt eller manglende tekst gir None."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignorerer ødelagte lagrede data")
        return None


def ensure_plan_shape(raw: Any) -> WeekPlan:
    """Alle sju dager finnes alltid; verdier som ikke er lister erstattes med tom liste."""
    plan = empty_plan()
    if not isinstance(raw, dict):
        return plan
    for day in DAYS:
        value = raw.get(day)
        if isinstance(value, list):
            plan[day] = [item for item in value if isinstance(item, str)]
    return plan


def normalize_current(snapshot: CurrentPlansSnapshot, today: date | None = None) -> WeeklyPlans:
    result: WeeklyPlans = {}
    for week, plan in snapshot.plans.items():
        result[to_monday(week, today)] = ensure_plan_shape(plan)
    return result


def normalize_legacy_single_plan(snapshot: LegacySinglePlanSnapshot, today: date | None = None) -> WeeklyPlans:
    if not isinstance(snapshot.plan, dict):
        return {}
    week_start = snapshot.week_start or upcoming_monday(today)
    return {to_monday(week_start, today): ensure_plan_shape(snapshot.plan)}


_PLAN_NORMALIZERS = {
    CurrentPlansSnapshot: normalize_current,
    LegacySinglePlanSnapshot: normalize_legacy_single_plan,
}


def merge_snapshots(snapshots: Iterable[Any], today: date | None = None) -> WeeklyPlans:
    """Slå sammen planvarianter i gitt rekkefølge; senere variant vinner ved samme mandag."""
    result: WeeklyPlans = {}
    for snapshot in snapshots:
        normalizer = _PLAN_NORMALIZERS.get(type(snapshot))
        if normalizer is None:
            continue
        result.update(normalizer(snapshot, today))
    return result


def legacy_meal_to_shared(doc: Dict[str, Any], household_id: str, household_name: str) -> Dict[str, Any]:
    """Gjør en rett fra den gamle felles samlingen om til et dokument i fellesbiblioteket."""
    return {
        "title": doc.get("title"),
        "ingredients": doc.get("ingredients") or "",
        "imageUrl": doc.get("imageUrl"),
        "steps": doc.get("steps"),
        "addedBy": household_id,
        "addedByHousehold": household_name,
        "addedAt": SERVER_TIMESTAMP,
    }


def normalize_legacy_meals(
    snapshot: LegacyTopLevelMealsSnapshot, household_id: str, household_name: str
) -> list[Dict[str, Any]]:
    return [
        legacy_meal_to_shared(doc, household_id, household_name)
        for doc in snapshot.meals
        if isinstance(doc, dict) and doc.get("title")
    ]
