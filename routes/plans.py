from __future__ import annotations

from fastapi import APIRouter, Form, Request
from fastapi.responses import Response

from core.errors import PlannerError
from routes.common import get_planner, resolve_household, serialize_meal, serialize_plan
from services.calendar_export import ICS_FILENAME, build_ics
from services.plan_views import current_plan, usage_statistics, week_history, week_list
from services.planner_service import OUT_OF_RANGE
from services.week_dates import to_monday

router = APIRouter()


@router.get("/plans")
async def overview(request: Request, household_id: str | None = None):
    """Lagrede uker og planen for uken som er valgt."""
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    plans = planner.weekly_plans(household)
    week = planner.current_week_start(household)
    return {
        "weeks": week_list(plans),
        "current_week": week,
        "plan": serialize_plan(week, current_plan(plans, week), planner.meals(household)),
        "error": planner.pop_error(household),
    }


@router.get("/plans/history")
async def history(request: Request, household_id: str | None = None):
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    summaries = week_history(planner.weekly_plans(household), planner.current_week_start(household))
    return {
        "history": [
            {"week_start": s.week_start, "planned_count": s.planned_count, "active": s.active} for s in summaries
        ]
    }


@router.get("/plans/stats")
async def stats(request: Request, household_id: str | None = None):
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    usage = usage_statistics(planner.weekly_plans(household), planner.meals(household))
    return {"stats": [{"meal": serialize_meal(u.meal), "count": u.count} for u in usage]}


@router.get("/plans/{week}")
async def get_plan(request: Request, week: str, household_id: str | None = None):
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    monday = to_monday(week, planner.today)
    return serialize_plan(monday, planner.plan_for(monday, household), planner.meals(household))


@router.post("/plans/{week}/select")
async def select_week(request: Request, week: str, household_id: str | None = Form(None)):
    household = resolve_household(request, household_id)
    return {"current_week": get_planner(request).select_week(week, household)}


@router.post("/plans/{week}/navigate")
async def navigate_week(
    request: Request, week: str, direction: int = Form(...), household_id: str | None = Form(None)
):
    household = resolve_household(request, household_id)
    return {"current_week": get_planner(request).navigate_week(direction, week, household)}


@router.post("/plans/{week}/days/{day}")
async def add_to_day(
    request: Request, week: str, day: str, meal_id: str = Form(""), household_id: str | None = Form(None)
):
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    monday = to_monday(week, planner.today)
    plan = planner.add_meal_to_day(day, meal_id, monday, household)
    return serialize_plan(monday, plan, planner.meals(household))


@router.delete("/plans/{week}/days/{day}/{index}")
async def remove_from_day(request: Request, week: str, day: str, index: int, household_id: str | None = None):
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    monday = to_monday(week, planner.today)
    plan = planner.remove_from_plan(day, index, monday, household)
    return serialize_plan(monday, plan, planner.meals(household))


@router.get("/plans/{week}/calendar.ics")
async def export_calendar(request: Request, week: str, household_id: str | None = None):
    """Ukeplanen som heldagshendelser i iCalendar-format."""
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    monday = to_monday(week, planner.today)
    try:
        content = build_ics(planner.plan_for(monday, household), planner.meals(household), monday)
    except OverflowError as exc:
        raise PlannerError(OUT_OF_RANGE) from exc
    return Response(
        content=content,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{ICS_FILENAME}"'},
    )
