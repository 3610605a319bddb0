from __future__ import annotations

from typing import Dict, List, Tuple

DAYS: Tuple[str, ...] = (
    "Mandag",
    "Tirsdag",
    "Onsdag",
    "Torsdag",
    "Fredag",
    "Lørdag",
    "Søndag",
)

# Ukedag -> ordnet liste med rett-ID-er
WeekPlan = Dict[str, List[str]]
# Mandagsdato (ISO) -> ukeplan
WeeklyPlans = Dict[str, WeekPlan]


def empty_plan() -> WeekPlan:
    return {day: [] for day in DAYS}


def is_day(value: str) -> bool:
    return value in DAYS
