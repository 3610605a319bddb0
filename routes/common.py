from __future__ import annotations

from typing import Any, Dict, List, Sequence

from fastapi import HTTPException, Request

from models.meal import Meal
from models.week_plan import DAYS, WeekPlan
from services.migration_service import MigrationService
from services.plan_views import entries_for_day, has_entries, planned_count
from services.planner_service import PlannerService
from services.profile_service import ProfileService


def get_planner(request: Request) -> PlannerService:
    return request.app.state.planner


def get_migration(request: Request) -> MigrationService:
    migration = request.app.state.migration
    if migration is None:
        raise HTTPException(status_code=404, detail="Skylagring er ikke aktivert")
    return migration


def get_profiles(request: Request) -> ProfileService:
    profiles = request.app.state.profiles
    if profiles is None:
        raise HTTPException(status_code=404, detail="Skylagring er ikke aktivert")
    return profiles


def resolve_household(request: Request, household_id: str | None) -> str | None:
    """Lokal modus har ingen husstand; skymodus krever en registrert husstand."""
    if not get_planner(request).uses_remote:
        return None
    if not household_id:
        raise HTTPException(status_code=400, detail="household_id mangler")
    if get_profiles(request).get_profile(household_id) is None:
        raise HTTPException(status_code=404, detail="Ukjent husstand")
    return household_id


def serialize_meal(meal: Meal) -> Dict[str, Any]:
    return meal.model_dump(by_alias=True, mode="json")


def serialize_meals(meals: Sequence[Meal]) -> List[Dict[str, Any]]:
    return [serialize_meal(meal) for meal in meals]


def serialize_plan(week_start: str, plan: WeekPlan, meals: Sequence[Meal]) -> Dict[str, Any]:
    return {
        "week_start": week_start,
        "has_entries": has_entries(plan),
        "planned_count": planned_count(plan),
        "days": {
            day: [
                {"index": entry.index, "meal_id": entry.meal_id, "title": entry.title, "deleted": entry.deleted}
                for entry in entries_for_day(plan, day, meals)
            ]
            for day in DAYS
        },
    }
