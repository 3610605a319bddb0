from __future__ import annotations

from typing import List

from fastapi import APIRouter, Form, Request

from routes.common import get_migration, resolve_household

router = APIRouter()


@router.get("/migration")
async def migration_status(request: Request, household_id: str | None = None):
    household = resolve_household(request, household_id)
    migration = get_migration(request)
    meals = migration.local.load_meals(with_defaults=False)
    plans = migration.local.load_weekly_plans()
    return {
        "state": migration.state(household).value,
        "needs_migration": migration.needs_migration(household),
        "local_meals": len(meals),
        "local_weeks": len(plans),
    }


@router.post("/migration")
async def run_migration(request: Request, household_id: str | None = Form(None)):
    """Flytt lokale retter og ukeplaner til skylagringen."""
    household = resolve_household(request, household_id)
    progress: List[str] = []
    report = get_migration(request).migrate(household, progress.append)
    return {
        "state": report.state.value,
        "meals_migrated": report.meals_migrated,
        "plans_migrated": report.plans_migrated,
        "progress": progress,
    }


@router.post("/migration/dismiss")
async def dismiss_migration(request: Request):
    get_migration(request).dismiss()
    return {"state": "done"}
