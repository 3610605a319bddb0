"""Datamodeller for retter, ukeplaner, husstandsprofiler og lagrede dataformer."""

from models.meal import Meal, MealDraft, SharedMeal  # noqa: F401
from models.profile import UserProfile  # noqa: F401
from models.snapshot import StorageSnapshot  # noqa: F401
from models.week_plan import DAYS, WeekPlan, WeeklyPlans  # noqa: F401
