"""Avledede visninger over innlastet tilstand. Rene funksjoner uten lagring."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from models.meal import DELETED_MEAL_TITLE, Meal, SharedMeal
from models.week_plan import DAYS, WeekPlan, WeeklyPlans, empty_plan

SUGGESTION_LIMIT = 5


@dataclass
class MealUsage:
    meal: Meal
    count: int


@dataclass
class PlanEntry:
    index: int
    meal_id: str
    title: str
    meal: Optional[Meal] = None

    @property
    def deleted(self) -> bool:
        return self.meal is None


@dataclass
class WeekSummary:
    week_start: str
    planned_count: int
    active: bool = False


def current_plan(plans: WeeklyPlans, week_start: str) -> WeekPlan:
    """Planen for valgt uke, eller en tom plan med alle sju dager."""
    plan = plans.get(week_start)
    if plan is None:
        return empty_plan()
    return plan


def has_entries(plan: WeekPlan) -> bool:
    return any(plan.get(day) for day in DAYS)


def planned_count(plan: WeekPlan) -> int:
    return sum(len(plan.get(day) or []) for day in DAYS)


def _index(meals: Sequence[Meal]) -> Dict[str, Meal]:
    return {meal.id: meal for meal in meals}


def entries_for_day(plan: WeekPlan, day: str, meals: Sequence[Meal]) -> List[PlanEntry]:
    lookup = _index(meals)
    entries = []
    for idx, meal_id in enumerate(plan.get(day) or []):
        meal = lookup.get(meal_id)
        entries.append(
            PlanEntry(index=idx, meal_id=meal_id, title=meal.title if meal else DELETED_MEAL_TITLE, meal=meal)
        )
    return entries


def usage_statistics(plans: WeeklyPlans, meals: Sequence[Meal]) -> List[MealUsage]:
    """Hvor mange ganger hver rett er valgt på tvers av alle uker, mest brukt først.

    IDer som ikke lenger finnes blant rettene tas ikke med.
    """
    counts: Counter = Counter()
    for plan in plans.values():
        for day in DAYS:
            counts.update(plan.get(day) or [])
    lookup = _index(meals)
    stats = [MealUsage(meal=lookup[meal_id], count=count) for meal_id, count in counts.items() if meal_id in lookup]
    stats.sort(key=lambda usage: usage.count, reverse=True)
    return stats


def _contains(value: Optional[str], query: str) -> bool:
    return bool(value) and query in value.lower()


def filter_meals(meals: Sequence[Meal], query: str | None) -> List[Meal]:
    q = (query or "").strip().lower()
    if not q:
        return list(meals)
    return [
        meal
        for meal in meals
        if _contains(meal.title, q) or _contains(meal.ingredients, q) or _contains(meal.steps, q)
    ]


def filter_shared_meals(meals: Sequence[SharedMeal], query: str | None) -> List[SharedMeal]:
    q = (query or "").strip().lower()
    if not q:
        return list(meals)
    return [
        meal
        for meal in meals
        if _contains(meal.title, q) or _contains(meal.ingredients, q) or _contains(meal.added_by_household, q)
    ]


def meal_suggestions(meals: Sequence[Meal], query: str | None, limit: int = SUGGESTION_LIMIT) -> List[Meal]:
    """Autosøk for en dag: tittel-treff, maks fem."""
    q = (query or "").lower()
    if not q:
        return []
    return [meal for meal in meals if q in meal.title.lower()][:limit]


def week_list(plans: WeeklyPlans) -> List[str]:
    return sorted(plans)


def week_history(plans: WeeklyPlans, active_week: str | None = None) -> List[WeekSummary]:
    return [
        WeekSummary(week_start=week, planned_count=planned_count(plans[week]), active=week == active_week)
        for week in week_list(plans)
    ]
