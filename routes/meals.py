from __future__ import annotations

from fastapi import APIRouter, Form, HTTPException, Request

from models.meal import MealDraft
from routes.common import get_planner, resolve_household, serialize_meal, serialize_meals
from services.plan_views import filter_meals, meal_suggestions

router = APIRouter()


@router.get("/meals")
async def list_meals(request: Request, q: str | None = None, household_id: str | None = None):
    """Husstandens retter, eventuelt filtrert på tittel, ingredienser eller fremgangsmåte."""
    household = resolve_household(request, household_id)
    meals = get_planner(request).meals(household)
    return {"meals": serialize_meals(filter_meals(meals, q)), "query": q or ""}


@router.get("/meals/suggestions")
async def suggest_meals(request: Request, q: str | None = None, household_id: str | None = None):
    household = resolve_household(request, household_id)
    meals = get_planner(request).meals(household)
    return {"suggestions": serialize_meals(meal_suggestions(meals, q))}


@router.post("/meals", status_code=201)
async def create_meal(
    request: Request,
    title: str = Form(""),
    ingredients: str = Form(""),
    steps: str | None = Form(None),
    image_url: str | None = Form(None),
    household_id: str | None = Form(None),
):
    household = resolve_household(request, household_id)
    draft = MealDraft(title=title, ingredients=ingredients, steps=steps, image_url=image_url)
    meal = get_planner(request).save_meal(draft, household_id=household)
    return serialize_meal(meal)


@router.put("/meals/{meal_id}")
async def update_meal(
    request: Request,
    meal_id: str,
    title: str = Form(""),
    ingredients: str = Form(""),
    steps: str | None = Form(None),
    image_url: str | None = Form(None),
    household_id: str | None = Form(None),
):
    household = resolve_household(request, household_id)
    planner = get_planner(request)
    if planner.get_meal(meal_id, household) is None:
        raise HTTPException(status_code=404, detail="Fant ikke retten")
    draft = MealDraft(title=title, ingredients=ingredients, steps=steps, image_url=image_url)
    meal = planner.save_meal(draft, meal_id=meal_id, household_id=household)
    return serialize_meal(meal)


@router.delete("/meals/{meal_id}")
async def delete_meal(request: Request, meal_id: str, household_id: str | None = None):
    household = resolve_household(request, household_id)
    get_planner(request).delete_meal(meal_id, household)
    return {"status": "deleted", "id": meal_id}
