from __future__ import annotations

import logging
import uuid
from typing import Callable, List, Optional

from pydantic import ValidationError

from core.database import SERVER_TIMESTAMP, Document, DocumentDatabase
from models.meal import Meal, SharedMeal
from models.profile import UserProfile
from models.week_plan import WeekPlan, WeeklyPlans
from services.normalization import ensure_plan_shape

logger = logging.getLogger(__name__)

USERS = "users"
SHARED_MEALS = "sharedMeals"
LEGACY_MEALS = "meals"
CONFIG = "config"
LEGACY_MIGRATION_DOC = "legacyMigration"
LOCAL_MIGRATION_DOC = "migration"

Unsubscribe = Callable[[], None]
ErrorCallback = Optional[Callable[[Exception], None]]


def make_id() -> str:
    return str(uuid.uuid4())


def meals_path(uid: str) -> str:
    return f"{USERS}/{uid}/meals"


def plans_path(uid: str) -> str:
    return f"{USERS}/{uid}/weeklyPlans"


def household_config_path(uid: str) -> str:
    return f"{USERS}/{uid}/{CONFIG}"


def _to_meals(docs: List[Document]) -> List[Meal]:
    meals = []
    for doc_id, data in docs:
        try:
            meals.append(Meal.model_validate({**data, "id": doc_id}))
        except ValidationError:
            logger.warning("Hopper over ugyldig rett %s", doc_id)
    return meals


def _to_shared(docs: List[Document]) -> List[SharedMeal]:
    meals = []
    for doc_id, data in docs:
        try:
            meals.append(SharedMeal.model_validate({**data, "id": doc_id}))
        except ValidationError:
            logger.warning("Hopper over ugyldig delt rett %s", doc_id)
    return meals


def _to_plans(docs: List[Document]) -> WeeklyPlans:
    return {doc_id: ensure_plan_shape(data) for doc_id, data in docs}


class RemoteStore:
    """Skylagring per husstand, pluss fellesbiblioteket som alle husstander ser."""

    def __init__(self, db: DocumentDatabase) -> None:
        self.db = db

    # profiler
    def create_user_profile(self, uid: str, email: str, household_name: str) -> None:
        self.db.set(
            USERS,
            uid,
            {"email": email, "householdName": household_name, "createdAt": SERVER_TIMESTAMP},
        )

    def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        data = self.db.get(USERS, uid)
        if data is None:
            return None
        return UserProfile.model_validate(data)

    def find_profile_by_email(self, email: str) -> Optional[str]:
        needle = email.strip().lower()
        for doc_id, data in self.db.list(USERS):
            if str(data.get("email", "")).lower() == needle:
                return doc_id
        return None

    # retter
    def subscribe_meals(
        self, uid: str, callback: Callable[[List[Meal]], None], on_error: ErrorCallback = None
    ) -> Unsubscribe:
        return self.db.watch(meals_path(uid), lambda docs: callback(_to_meals(docs)), on_error, order_by="title")

    def list_meals(self, uid: str) -> List[Meal]:
        return _to_meals(self.db.list(meals_path(uid), order_by="title"))

    def has_meals(self, uid: str) -> bool:
        return self.db.count(meals_path(uid)) > 0

    def save_meal(self, uid: str, meal: Meal) -> None:
        """Samme ID overskriver; brukes både for ny og redigert rett."""
        self.db.set(meals_path(uid), meal.id, meal.to_document())

    def delete_meal(self, uid: str, meal_id: str) -> None:
        self.db.delete(meals_path(uid), meal_id)

    # ukeplaner
    def subscribe_weekly_plans(
        self, uid: str, callback: Callable[[WeeklyPlans], None], on_error: ErrorCallback = None
    ) -> Unsubscribe:
        return self.db.watch(plans_path(uid), lambda docs: callback(_to_plans(docs)), on_error)

    def list_weekly_plans(self, uid: str) -> WeeklyPlans:
        return _to_plans(self.db.list(plans_path(uid)))

    def update_weekly_plan(self, uid: str, week_start: str, plan: WeekPlan) -> None:
        """Planen erstattes i sin helhet (siste skriving vinner)."""
        self.db.set(plans_path(uid), week_start, ensure_plan_shape(plan))

    # fellesbibliotek
    def subscribe_shared_meals(
        self, callback: Callable[[List[SharedMeal]], None], on_error: ErrorCallback = None
    ) -> Unsubscribe:
        return self.db.watch(SHARED_MEALS, lambda docs: callback(_to_shared(docs)), on_error, order_by="title")

    def list_shared_meals(self) -> List[SharedMeal]:
        return _to_shared(self.db.list(SHARED_MEALS, order_by="title"))

    def get_shared_meal(self, shared_id: str) -> Optional[SharedMeal]:
        data = self.db.get(SHARED_MEALS, shared_id)
        if data is None:
            return None
        return SharedMeal.model_validate({**data, "id": shared_id})

    def share_meal(self, meal: Meal, uid: str, household_name: str) -> str:
        shared_id = make_id()
        self.db.set(
            SHARED_MEALS,
            shared_id,
            {
                **meal.to_document(),
                "addedBy": uid,
                "addedByHousehold": household_name,
                "addedAt": SERVER_TIMESTAMP,
            },
        )
        return shared_id

    def delete_shared_meal(self, shared_id: str) -> None:
        self.db.delete(SHARED_MEALS, shared_id)

    def import_shared_meal(self, uid: str, shared: SharedMeal) -> Meal:
        """Kopier en delt rett inn som ny, selvstendig rett med ny ID."""
        meal = Meal(
            id=make_id(),
            title=shared.title,
            ingredients=shared.ingredients,
            steps=shared.steps,
            image_url=shared.image_url,
        )
        self.save_meal(uid, meal)
        return meal

    # migreringsflagg
    def is_migration_done(self, uid: str) -> bool:
        data = self.db.get(household_config_path(uid), LOCAL_MIGRATION_DOC)
        return bool(data and data.get("done"))

    def mark_migration_done(self, uid: str) -> None:
        self.db.set(household_config_path(uid), LOCAL_MIGRATION_DOC, {"done": True, "migratedAt": SERVER_TIMESTAMP})
