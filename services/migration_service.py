"""Engangsmigreringer: lokal lagring -> skylagring, og gammel felles samling -> fellesbibliotek.

Tilstanden (not-started / in-progress / done) styres av lagrede flagg som leses
før hver overgang. Skrivinger er upserts på samme ID, så et nytt forsøk etter en
feil overskriver i stedet for å duplisere.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Set

from core.database import SERVER_TIMESTAMP
from core.errors import StoreError, MigrationError
from models.snapshot import LegacyTopLevelMealsSnapshot
from services.local_store import LocalPlannerStore
from services.normalization import normalize_legacy_meals
from services.plan_views import has_entries
from services.remote_store import CONFIG, LEGACY_MEALS, LEGACY_MIGRATION_DOC, SHARED_MEALS, RemoteStore, make_id, meals_path

logger = logging.getLogger(__name__)

ProgressCallback = Optional[Callable[[str], None]]


class MigrationState(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    DONE = "done"


@dataclass
class MigrationReport:
    state: MigrationState
    meals_migrated: int = 0
    plans_migrated: int = 0

    @property
    def writes(self) -> int:
        return self.meals_migrated + self.plans_migrated


class MigrationService:
    def __init__(self, local: LocalPlannerStore, remote: RemoteStore) -> None:
        self.local = local
        self.remote = remote
        self._in_progress: Set[str] = set()
        self._attempted: Set[str] = set()

    def _flag_set(self, uid: str) -> bool:
        return self.local.is_migration_done() or self.remote.is_migration_done(uid)

    def state(self, uid: str) -> MigrationState:
        if uid in self._in_progress:
            return MigrationState.IN_PROGRESS
        if self._flag_set(uid):
            return MigrationState.DONE
        return MigrationState.NOT_STARTED

    def has_local_data(self) -> bool:
        meals = self.local.load_meals(with_defaults=False)
        plans = self.local.load_weekly_plans()
        return bool(meals) or any(has_entries(plan) for plan in plans.values())

    def needs_migration(self, uid: str) -> bool:
        """Flagg mangler, skyen har ingen retter og lokal lagring har noe å flytte."""
        if self.state(uid) is not MigrationState.NOT_STARTED:
            return False
        try:
            if self.remote.has_meals(uid):
                return False
        except StoreError as exc:
            logger.error("Kunne ikke sjekke skylagring for %s: %s", uid, exc)
            return False
        return self.has_local_data()

    def migrate(self, uid: str, on_progress: ProgressCallback = None) -> MigrationReport:
        state = self.state(uid)
        if state is MigrationState.DONE:
            return MigrationReport(state=state)
        if state is MigrationState.IN_PROGRESS:
            raise MigrationError("Migrering pågår allerede", status_code=409)
        # Et mislykket forsøk kan ha skrevet retter; da tillates nytt forsøk
        if uid not in self._attempted and not self.needs_migration(uid):
            raise MigrationError("Ingenting å migrere for denne husstanden", status_code=409)

        progress = on_progress or (lambda _status: None)
        self._attempted.add(uid)
        self._in_progress.add(uid)
        try:
            meals = self.local.load_meals(with_defaults=False)
            plans = self.local.load_weekly_plans()

            progress("Migrerer retter...")
            if meals:
                with self.remote.db.batch() as batch:
                    for meal in meals:
                        batch.set(meals_path(uid), meal.id, meal.to_document())
                progress(f"Migrerte {len(meals)} retter")

            progress("Migrerer ukeplaner...")
            for week_start, plan in plans.items():
                self.remote.update_weekly_plan(uid, week_start, plan)
            progress(f"Migrerte {len(plans)} ukeplaner")

            self.remote.mark_migration_done(uid)
            self.local.mark_migration_done()
        except StoreError as exc:
            logger.error("Migrering feilet for %s: %s", uid, exc)
            raise MigrationError(str(exc) or "En ukjent feil oppstod under migrering", status_code=503) from exc
        finally:
            self._in_progress.discard(uid)

        logger.info("Migrerte %d retter og %d ukeplaner for %s", len(meals), len(plans), uid)
        return MigrationReport(state=MigrationState.DONE, meals_migrated=len(meals), plans_migrated=len(plans))

    def dismiss(self) -> None:
        """Brukeren takket nei; ikke spør igjen i denne lagringen."""
        self.local.mark_migration_done()

    def migrate_legacy_meals_to_shared(self, uid: str, household_name: str) -> bool:
        """Flytt den gamle felles samlingen inn i fellesbiblioteket én gang.

        Flagget leses før skriving uten lås; to husstander som starter samtidig
        kan derfor importere de samme rettene to ganger.
        """
        db = self.remote.db
        try:
            if db.get(CONFIG, LEGACY_MIGRATION_DOC) is not None:
                return False
            snapshot = LegacyTopLevelMealsSnapshot(meals=[data for _id, data in db.list(LEGACY_MEALS)])
            shared_docs = normalize_legacy_meals(snapshot, uid, household_name)
            with db.batch() as batch:
                for doc in shared_docs:
                    batch.set(SHARED_MEALS, make_id(), doc)
                batch.set(CONFIG, LEGACY_MIGRATION_DOC, {"done": True, "migratedAt": SERVER_TIMESTAMP})
        except StoreError as exc:
            logger.error("Feil ved migrering av gamle retter til fellesbiblioteket: %s", exc)
            return False
        logger.info("Flyttet %d gamle retter til fellesbiblioteket", len(shared_docs))
        return True
