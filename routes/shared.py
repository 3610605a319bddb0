from __future__ import annotations

from fastapi import APIRouter, Form, HTTPException, Request

from routes.common import get_planner, get_profiles, resolve_household, serialize_meal, serialize_meals
from services.plan_views import filter_shared_meals

router = APIRouter()


@router.get("/shared")
async def list_shared(request: Request, q: str | None = None):
    """Fellesbiblioteket, filtrert på tittel, ingredienser eller husstand."""
    meals = get_planner(request).shared_meals()
    return {"meals": serialize_meals(filter_shared_meals(meals, q)), "query": q or ""}


@router.post("/shared", status_code=201)
async def share_meal(request: Request, meal_id: str = Form(...), household_id: str | None = Form(None)):
    household = resolve_household(request, household_id)
    if household is None:
        raise HTTPException(status_code=400, detail="Fellesbiblioteket krever skylagring")
    profile = get_profiles(request).get_profile(household)
    shared_id = get_planner(request).share_meal(meal_id, household, profile.household_name)
    return {"id": shared_id}


@router.post("/shared/{shared_id}/import", status_code=201)
async def import_shared(request: Request, shared_id: str, household_id: str | None = Form(None)):
    household = resolve_household(request, household_id)
    if household is None:
        raise HTTPException(status_code=400, detail="Fellesbiblioteket krever skylagring")
    meal = get_planner(request).import_shared_meal(shared_id, household)
    return serialize_meal(meal)


@router.delete("/shared/{shared_id}")
async def delete_shared(request: Request, shared_id: str, household_id: str | None = None):
    household = resolve_household(request, household_id)
    get_planner(request).delete_shared_meal(shared_id, household)
    return {"status": "deleted", "id": shared_id}
