import unittest

from models.meal import Meal, SharedMeal
from models.week_plan import empty_plan
from services.plan_views import (
    current_plan,
    entries_for_day,
    filter_meals,
    filter_shared_meals,
    has_entries,
    meal_suggestions,
    planned_count,
    usage_statistics,
    week_history,
    week_list,
)
from services.seed_data import default_meals


def _plan(**days):
    plan = empty_plan()
    plan.update(days)
    return plan


class TestPlanViews(unittest.TestCase):
    def setUp(self):
        self.meals = [Meal(id="m1", title="Taco"), Meal(id="m2", title="Lasagne")]

    def test_current_plan_defaults_to_empty_week(self):
        plan = current_plan({}, "2024-01-01")
        self.assertEqual(len(plan), 7)
        self.assertFalse(has_entries(plan))

    def test_has_entries_and_count(self):
        plan = _plan(Mandag=["m1"], Fredag=["m1", "m2"])
        self.assertTrue(has_entries(plan))
        self.assertEqual(planned_count(plan), 3)

    def test_usage_statistics(self):
        plans = {
            "2024-01-01": _plan(Mandag=["m1", "m2"], Tirsdag=["m1"]),
            "2024-01-08": _plan(Onsdag=["m1", "slettet"]),
        }
        stats = usage_statistics(plans, self.meals)
        self.assertEqual([(u.meal.id, u.count) for u in stats], [("m1", 3), ("m2", 1)])

        plans["2024-01-15"] = _plan(Søndag=["m2"])
        stats = usage_statistics(plans, self.meals)
        self.assertEqual([(u.meal.id, u.count) for u in stats], [("m1", 3), ("m2", 2)])

    def test_dangling_ids_render_as_deleted(self):
        entries = entries_for_day(_plan(Mandag=["m1", "borte"]), "Mandag", self.meals)
        self.assertEqual([e.title for e in entries], ["Taco", "Slettet rett"])
        self.assertTrue(entries[1].deleted)
        self.assertEqual(entries[1].index, 1)

    def test_filter_meals(self):
        meals = default_meals()
        self.assertEqual([m.title for m in filter_meals(meals, "laks")], ["Superrask rød curry med laks"])
        self.assertEqual(filter_meals(meals, "xyz"), [])
        self.assertEqual(len(filter_meals(meals, "  ")), 2)
        self.assertEqual(len(filter_meals(meals, "KOKOSMELK")), 1)

    def test_filter_shared_meals_by_household(self):
        shared = [
            SharedMeal(id="s1", title="Grøt", added_by="h1", added_by_household="Familien Hansen"),
            SharedMeal(id="s2", title="Pizza", added_by="h2", added_by_household="Familien Olsen"),
        ]
        self.assertEqual([m.id for m in filter_shared_meals(shared, "olsen")], ["s2"])

    def test_suggestions_limited_to_five(self):
        meals = [Meal(id=str(i), title=f"Suppe {i}") for i in range(8)]
        self.assertEqual(len(meal_suggestions(meals, "suppe")), 5)
        self.assertEqual(meal_suggestions(meals, ""), [])

    def test_week_list_and_history(self):
        plans = {"2024-01-08": _plan(Mandag=["m1"]), "2024-01-01": _plan()}
        self.assertEqual(week_list(plans), ["2024-01-01", "2024-01-08"])
        history = week_history(plans, "2024-01-08")
        self.assertEqual([(h.week_start, h.planned_count, h.active) for h in history],
                         [("2024-01-01", 0, False), ("2024-01-08", 1, True)])


if __name__ == "__main__":
    unittest.main()
