import json

from models.meal import Meal
from services.local_store import (
    LEGACY_PLAN_KEY,
    LEGACY_WEEK_START_KEY,
    MEAL_STORAGE_KEY,
    LocalPlannerStore,
    LocalStorage,
)


def test_empty_storage_gives_default_meals(local_store):
    meals = local_store.load_meals()
    assert [meal.id for meal in meals] == ["seed-curry-laks", "seed-pannekaker"]
    assert local_store.load_meals(with_defaults=False) == []


def test_corrupt_storage_falls_back_to_defaults(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_text("{ikke json", encoding="utf-8")
    store = LocalPlannerStore(LocalStorage(path))
    assert len(store.load_meals()) == 2
    assert store.load_weekly_plans() == {}


def test_corrupt_meal_value_falls_back_to_defaults(storage, local_store):
    storage.set_item(MEAL_STORAGE_KEY, "[ødelagt")
    assert len(local_store.load_meals()) == 2


def test_upsert_and_delete_meal(local_store):
    meal = Meal(id="m1", title="Taco", ingredients="lefser\nkjøttdeig")
    local_store.upsert_meal(meal)
    assert "m1" in [m.id for m in local_store.load_meals()]

    local_store.upsert_meal(Meal(id="m1", title="Fredagstaco", ingredients="lefser"))
    titles = [m.title for m in local_store.load_meals() if m.id == "m1"]
    assert titles == ["Fredagstaco"]

    local_store.delete_meal("m1")
    assert "m1" not in [m.id for m in local_store.load_meals()]


def test_meals_are_stored_with_image_alias(storage, local_store):
    local_store.save_meals([Meal(id="m1", title="Suppe", image_url="https://bilde.no/suppe.jpg")])
    stored = json.loads(storage.get_item(MEAL_STORAGE_KEY))
    assert stored[0]["imageUrl"] == "https://bilde.no/suppe.jpg"


def test_legacy_plan_is_read_into_weekly_plans(storage, local_store):
    storage.set_item(LEGACY_PLAN_KEY, json.dumps({"Mandag": ["m1"]}))
    storage.set_item(LEGACY_WEEK_START_KEY, "2024-01-03")

    plans = local_store.load_weekly_plans()
    assert plans["2024-01-01"]["Mandag"] == ["m1"]
    assert plans["2024-01-01"]["Søndag"] == []


def test_edits_to_legacy_week_survive_reload(storage, local_store):
    storage.set_item(LEGACY_PLAN_KEY, json.dumps({"Mandag": ["m1"]}))
    storage.set_item(LEGACY_WEEK_START_KEY, "2024-01-01")

    plan = local_store.load_weekly_plans()["2024-01-01"]
    plan["Mandag"] = ["m2"]
    local_store.upsert_week_plan("2024-01-01", plan)

    assert storage.get_item(LEGACY_PLAN_KEY) is None
    assert local_store.load_weekly_plans()["2024-01-01"]["Mandag"] == ["m2"]


def test_changing_week_marker_keeps_legacy_plan(storage, local_store):
    storage.set_item(LEGACY_PLAN_KEY, json.dumps({"Tirsdag": ["m1"]}))
    storage.set_item(LEGACY_WEEK_START_KEY, "2024-01-01")

    local_store.set_week_start("2024-01-08")

    plans = local_store.load_weekly_plans()
    assert plans["2024-01-01"]["Tirsdag"] == ["m1"]
    assert local_store.get_week_start() == "2024-01-08"


def test_migration_flag(local_store):
    assert local_store.is_migration_done() is False
    local_store.mark_migration_done()
    assert local_store.is_migration_done() is True
