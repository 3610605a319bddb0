"""Applikasjonslaget for planleggeren: retter, ukeplaner, ukevalg og fellesbibliotek.

Lokal modus skriver hele samlingen til lokal lagring ved hver endring. Skymodus
holder en hurtigbuffer per husstand som mates av abonnementene på retter og
ukeplaner; skrivinger går til lageret og kommer tilbake via abonnementet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional

from core.errors import PlannerError, StoreError
from models.meal import Meal, MealDraft, SharedMeal
from models.week_plan import DAYS, WeekPlan, WeeklyPlans, empty_plan, is_day
from services.local_store import LocalPlannerStore
from services.plan_views import current_plan
from services.remote_store import RemoteStore, make_id, meals_path
from services.seed_data import default_meals
from services.week_dates import initial_week_start, shift_week, to_monday

logger = logging.getLogger(__name__)

OUT_OF_RANGE = "Uken er utenfor kalenderen"


@dataclass
class _HouseholdCache:
    meals: List[Meal] = field(default_factory=list)
    plans: WeeklyPlans = field(default_factory=dict)
    week_start: Optional[str] = None
    error: Optional[str] = None
    seed_pending: bool = False
    unsubscribers: List[Callable[[], None]] = field(default_factory=list)


class PlannerService:
    def __init__(
        self,
        local: LocalPlannerStore,
        remote: RemoteStore | None = None,
        today: date | None = None,
        seeding_blocked: Callable[[str], bool] | None = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.today = today
        # Standardretter holdes tilbake mens en migrering venter
        self.seeding_blocked = seeding_blocked or (lambda _household_id: False)
        self._households: Dict[str, _HouseholdCache] = {}

    @property
    def uses_remote(self) -> bool:
        return self.remote is not None

    # hurtigbuffer for skymodus
    def _cache(self, household_id: str | None) -> _HouseholdCache:
        if not household_id:
            raise PlannerError("Husstand mangler")
        cache = self._households.get(household_id)
        if cache is None:
            cache = self._attach(household_id)
        elif cache.seed_pending and not self.seeding_blocked(household_id):
            cache.seed_pending = False
            if not cache.meals and cache.error is None:
                self._seed_defaults(household_id, cache)
        return cache

    def _attach(self, household_id: str) -> _HouseholdCache:
        assert self.remote is not None
        cache = _HouseholdCache()
        self._households[household_id] = cache

        def on_meals(meals: List[Meal]) -> None:
            cache.meals = meals

        def on_plans(plans: WeeklyPlans) -> None:
            cache.plans = plans

        def on_meals_error(exc: Exception) -> None:
            cache.error = "Kunne ikke laste retter"

        def on_plans_error(exc: Exception) -> None:
            cache.error = "Kunne ikke laste ukeplaner"

        cache.unsubscribers.append(self.remote.subscribe_meals(household_id, on_meals, on_meals_error))
        cache.unsubscribers.append(self.remote.subscribe_weekly_plans(household_id, on_plans, on_plans_error))
        if not cache.meals and cache.error is None:
            # Avgjøres på nytt ved neste oppslag når migreringen ikke lenger venter
            if self.seeding_blocked(household_id):
                cache.seed_pending = True
            else:
                self._seed_defaults(household_id, cache)
        cache.week_start = initial_week_start(None, cache.plans.keys(), self.today)
        return cache

    def _seed_defaults(self, household_id: str, cache: _HouseholdCache) -> None:
        """Ny husstand uten retter får standardrettene."""
        seeds = default_meals()
        cache.meals = seeds
        try:
            with self.remote.db.batch() as batch:
                for meal in seeds:
                    batch.set(meals_path(household_id), meal.id, meal.to_document())
        except StoreError as exc:
            logger.error("Kunne ikke legge inn standardretter for %s: %s", household_id, exc)

    def pop_error(self, household_id: str | None = None) -> Optional[str]:
        """Siste abonnementsfeil for husstanden, nullstilles når den hentes."""
        cache = self._households.get(household_id or "")
        if cache is None:
            return None
        error, cache.error = cache.error, None
        return error

    # lesing
    def meals(self, household_id: str | None = None) -> List[Meal]:
        if self.uses_remote:
            return list(self._cache(household_id).meals)
        return self.local.load_meals()

    def get_meal(self, meal_id: str, household_id: str | None = None) -> Optional[Meal]:
        return next((meal for meal in self.meals(household_id) if meal.id == meal_id), None)

    def weekly_plans(self, household_id: str | None = None) -> WeeklyPlans:
        if self.uses_remote:
            return dict(self._cache(household_id).plans)
        return self.local.load_weekly_plans()

    def current_week_start(self, household_id: str | None = None) -> str:
        if self.uses_remote:
            cache = self._cache(household_id)
            if cache.week_start is None:
                cache.week_start = initial_week_start(None, cache.plans.keys(), self.today)
            return cache.week_start
        return initial_week_start(self.local.get_week_start(), self.local.load_weekly_plans().keys(), self.today)

    def plan_for(self, week_start: str | None = None, household_id: str | None = None) -> WeekPlan:
        week = to_monday(week_start, self.today) if week_start else self.current_week_start(household_id)
        return current_plan(self.weekly_plans(household_id), week)

    # retter
    def save_meal(self, draft: MealDraft, meal_id: str | None = None, household_id: str | None = None) -> Meal:
        """Ny rett når meal_id mangler, ellers redigering av eksisterende."""
        if not draft.title:
            raise PlannerError("Retten må ha en tittel")
        meal = draft.to_meal(meal_id or make_id())
        try:
            if self.uses_remote:
                self._cache(household_id)
                self.remote.save_meal(household_id, meal)
            else:
                self.local.upsert_meal(meal)
        except StoreError as exc:
            logger.error("Feil ved lagring av rett %s: %s", meal.id, exc)
            raise PlannerError("Kunne ikke lagre rett", status_code=503) from exc
        return meal

    def delete_meal(self, meal_id: str, household_id: str | None = None) -> None:
        """Planer som peker på retten beholder ID-en og viser den som slettet."""
        try:
            if self.uses_remote:
                self._cache(household_id)
                self.remote.delete_meal(household_id, meal_id)
            else:
                self.local.delete_meal(meal_id)
        except StoreError as exc:
            logger.error("Feil ved sletting av rett %s: %s", meal_id, exc)
            raise PlannerError("Kunne ikke slette rett", status_code=503) from exc

    # ukeplaner
    def _write_plan(self, week_start: str, plan: WeekPlan, household_id: str | None) -> None:
        if self.uses_remote:
            self.remote.update_weekly_plan(household_id, week_start, plan)
        else:
            self.local.upsert_week_plan(week_start, plan)

    def _resolve_week(self, week_start: str | None, household_id: str | None) -> str:
        if week_start:
            return to_monday(week_start, self.today)
        return self.current_week_start(household_id)

    def add_meal_to_day(
        self, day: str, meal_id: str, week_start: str | None = None, household_id: str | None = None
    ) -> WeekPlan:
        if not is_day(day):
            raise PlannerError(f"Ukjent dag: {day}")
        week = self._resolve_week(week_start, household_id)
        plan = current_plan(self.weekly_plans(household_id), week)
        if not meal_id:
            return plan
        new_plan = {d: list(plan.get(d) or []) for d in DAYS}
        new_plan[day].append(meal_id)
        try:
            self._write_plan(week, new_plan, household_id)
        except StoreError as exc:
            logger.error("Feil ved oppdatering av plan %s: %s", week, exc)
            raise PlannerError("Kunne ikke legge til rett i planen", status_code=503) from exc
        return new_plan

    def remove_from_plan(
        self, day: str, index: int, week_start: str | None = None, household_id: str | None = None
    ) -> WeekPlan:
        if not is_day(day):
            raise PlannerError(f"Ukjent dag: {day}")
        week = self._resolve_week(week_start, household_id)
        plan = current_plan(self.weekly_plans(household_id), week)
        new_plan = {d: list(plan.get(d) or []) for d in DAYS}
        new_plan[day] = [meal_id for i, meal_id in enumerate(new_plan[day]) if i != index]
        try:
            self._write_plan(week, new_plan, household_id)
        except StoreError as exc:
            logger.error("Feil ved fjerning fra plan %s: %s", week, exc)
            raise PlannerError("Kunne ikke fjerne rett fra planen", status_code=503) from exc
        return new_plan

    def ensure_week_exists(self, week_start: str, household_id: str | None = None) -> str:
        """Opprett en tom plan for uken hvis den ikke finnes. Returnerer mandagen."""
        monday = to_monday(week_start, self.today)
        if monday in self.weekly_plans(household_id):
            return monday
        try:
            self._write_plan(monday, empty_plan(), household_id)
        except StoreError as exc:
            logger.error("Feil ved oppretting av uke %s: %s", monday, exc)
            raise PlannerError("Kunne ikke opprette uke", status_code=503) from exc
        return monday

    def _set_week(self, monday: str, household_id: str | None) -> None:
        if self.uses_remote:
            self._cache(household_id).week_start = monday
            return
        try:
            self.local.set_week_start(monday)
        except StoreError as exc:
            logger.error("Kunne ikke lagre valgt uke %s: %s", monday, exc)
            raise PlannerError("Kunne ikke bytte uke", status_code=503) from exc

    def select_week(self, value: str | None, household_id: str | None = None) -> str:
        """Velg uken som inneholder datoen; tom verdi beholder gjeldende uke."""
        if not value:
            return self.current_week_start(household_id)
        monday = self.ensure_week_exists(value, household_id)
        self._set_week(monday, household_id)
        return monday

    def navigate_week(self, direction: int, week_start: str | None = None, household_id: str | None = None) -> str:
        if direction not in (1, -1):
            raise PlannerError("Retning må være 1 eller -1")
        base = week_start or self.current_week_start(household_id)
        try:
            target = shift_week(base, direction, self.today)
        except OverflowError as exc:
            raise PlannerError(OUT_OF_RANGE) from exc
        monday = self.ensure_week_exists(target, household_id)
        self._set_week(monday, household_id)
        return monday

    # fellesbibliotek
    def _require_remote(self) -> RemoteStore:
        if self.remote is None:
            raise PlannerError("Fellesbiblioteket krever skylagring")
        return self.remote

    def shared_meals(self) -> List[SharedMeal]:
        remote = self._require_remote()
        try:
            return remote.list_shared_meals()
        except StoreError as exc:
            logger.error("Feil ved lasting av fellesbiblioteket: %s", exc)
            raise PlannerError("Kunne ikke laste fellesbiblioteket", status_code=503) from exc

    def share_meal(self, meal_id: str, household_id: str, household_name: str) -> str:
        remote = self._require_remote()
        meal = self.get_meal(meal_id, household_id)
        if meal is None:
            raise PlannerError("Fant ikke retten", status_code=404)
        try:
            return remote.share_meal(meal, household_id, household_name)
        except StoreError as exc:
            logger.error("Feil ved deling av rett %s: %s", meal_id, exc)
            raise PlannerError("Kunne ikke dele rett", status_code=503) from exc

    def import_shared_meal(self, shared_id: str, household_id: str) -> Meal:
        remote = self._require_remote()
        self._cache(household_id)
        try:
            shared = remote.get_shared_meal(shared_id)
            if shared is None:
                raise PlannerError("Fant ikke den delte retten", status_code=404)
            return remote.import_shared_meal(household_id, shared)
        except StoreError as exc:
            logger.error("Feil ved import av delt rett %s: %s", shared_id, exc)
            raise PlannerError("Kunne ikke importere rett", status_code=503) from exc

    def delete_shared_meal(self, shared_id: str, household_id: str | None = None) -> None:
        """Bare husstanden som delte retten kan fjerne den når household_id er oppgitt."""
        remote = self._require_remote()
        try:
            shared = remote.get_shared_meal(shared_id)
            if shared is None:
                raise PlannerError("Fant ikke den delte retten", status_code=404)
            if household_id and shared.added_by != household_id:
                raise PlannerError("Bare husstanden som delte retten kan slette den", status_code=403)
            remote.delete_shared_meal(shared_id)
        except StoreError as exc:
            logger.error("Feil ved sletting av delt rett %s: %s", shared_id, exc)
            raise PlannerError("Kunne ikke slette delt rett", status_code=503) from exc

    def close(self) -> None:
        """Avslutt alle abonnementer."""
        for cache in self._households.values():
            for unsubscribe in cache.unsubscribers:
                unsubscribe()
        self._households.clear()
