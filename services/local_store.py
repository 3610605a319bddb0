from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from core.errors import StoreError
from models.meal import Meal
from models.snapshot import CurrentPlansSnapshot, LegacySinglePlanSnapshot
from models.week_plan import WeekPlan, WeeklyPlans
from services.normalization import ensure_plan_shape, merge_snapshots, parse_json
from services.seed_data import default_meals

logger = logging.getLogger(__name__)

# Nøklene må være stabile mellom versjoner for at gamle data skal kunne leses
MEAL_STORAGE_KEY = "dinner-plan:meals"
WEEKLY_PLANS_KEY = "dinner-plan:weekly-plans"
LEGACY_PLAN_KEY = "dinner-plan:weekly-plan"
LEGACY_WEEK_START_KEY = "dinner-plan:week-start"
MIGRATION_DONE_KEY = "dinner-plan:migration-done"


class LocalStorage:
    """Nøkkel/verdi-lager med tekstverdier i én JSON-fil (som nettleserens localStorage)."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning("Kunne ikke lese %s, behandles som tomt", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".storage_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2, ensure_ascii=False)
            shutil.move(tmp_path, self.path)
        except OSError as exc:
            raise StoreError(f"Kunne ikke skrive {self.path}: {exc}") from exc
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class LocalPlannerStore:
    """Retter og ukeplaner i lokal lagring.

    Ingen push-modell: hver endring skriver hele samlingen på nytt, og kallere
    leser inn igjen etterpå.
    """

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    # retter
    def load_meals(self, with_defaults: bool = True) -> List[Meal]:
        parsed = parse_json(self.storage.get_item(MEAL_STORAGE_KEY))
        meals: List[Meal] = []
        if isinstance(parsed, list):
            for item in parsed:
                try:
                    meals.append(Meal.model_validate(item))
                except ValidationError:
                    logger.warning("Hopper over ugyldig lagret rett: %r", item)
        if not meals and with_defaults:
            return default_meals()
        return meals

    def save_meals(self, meals: List[Meal]) -> None:
        payload = [meal.model_dump(by_alias=True) for meal in meals]
        self.storage.set_item(MEAL_STORAGE_KEY, json.dumps(payload, ensure_ascii=False))

    def upsert_meal(self, meal: Meal) -> None:
        meals = self.load_meals()
        for idx, existing in enumerate(meals):
            if existing.id == meal.id:
                meals[idx] = meal
                break
        else:
            meals.append(meal)
        self.save_meals(meals)

    def delete_meal(self, meal_id: str) -> None:
        self.save_meals([meal for meal in self.load_meals() if meal.id != meal_id])

    # ukeplaner
    def load_snapshots(self) -> list:
        """Lagrede planer i fast rekkefølge: gjeldende skjema først, gammel enkeltplan sist."""
        snapshots: list = []
        current = parse_json(self.storage.get_item(WEEKLY_PLANS_KEY))
        if isinstance(current, dict):
            snapshots.append(CurrentPlansSnapshot(plans=current))
        legacy_raw = self.storage.get_item(LEGACY_PLAN_KEY)
        if legacy_raw:
            legacy = parse_json(legacy_raw)
            if isinstance(legacy, dict):
                snapshots.append(
                    LegacySinglePlanSnapshot(plan=legacy, week_start=self.storage.get_item(LEGACY_WEEK_START_KEY))
                )
        return snapshots

    def load_weekly_plans(self) -> WeeklyPlans:
        return merge_snapshots(self.load_snapshots())

    def save_weekly_plans(self, plans: WeeklyPlans) -> None:
        self.storage.set_item(WEEKLY_PLANS_KEY, json.dumps(plans, ensure_ascii=False))
        # Den gamle enkeltplanen er nå foldet inn i kartet over
        self.storage.remove_item(LEGACY_PLAN_KEY)

    def fold_legacy_plan(self) -> None:
        """Skriv gammel enkeltplan inn i gjeldende skjema før ukemarkøren endres."""
        if self.storage.get_item(LEGACY_PLAN_KEY) is not None:
            self.save_weekly_plans(self.load_weekly_plans())

    def upsert_week_plan(self, week_start: str, plan: WeekPlan) -> None:
        plans = self.load_weekly_plans()
        plans[week_start] = ensure_plan_shape(plan)
        self.save_weekly_plans(plans)

    # ukemarkør og migreringsflagg
    def get_week_start(self) -> Optional[str]:
        return self.storage.get_item(LEGACY_WEEK_START_KEY)

    def set_week_start(self, week_start: str) -> None:
        self.fold_legacy_plan()
        self.storage.set_item(LEGACY_WEEK_START_KEY, week_start)

    def is_migration_done(self) -> bool:
        return self.storage.get_item(MIGRATION_DONE_KEY) == "true"

    def mark_migration_done(self) -> None:
        self.storage.set_item(MIGRATION_DONE_KEY, "true")
