import pytest

from core.errors import MigrationError, StoreError
from models.meal import Meal
from services.migration_service import MigrationService, MigrationState


@pytest.fixture
def migration(local_store, remote):
    return MigrationService(local_store, remote)


def _count_commits(db, monkeypatch):
    calls = []
    original = db.commit

    def counting(batch):
        calls.append(len(batch))
        return original(batch)

    monkeypatch.setattr(db, "commit", counting)
    return calls


def test_needs_migration_only_with_stored_local_data(migration, local_store):
    # Standardretter alene er ikke noe å migrere
    assert migration.needs_migration("h1") is False

    local_store.upsert_meal(Meal(id="m1", title="Taco"))
    assert migration.needs_migration("h1") is True


def test_needs_migration_false_when_remote_has_meals(migration, local_store, remote):
    local_store.upsert_meal(Meal(id="m1", title="Taco"))
    remote.save_meal("h1", Meal(id="x", title="Noe annet"))
    assert migration.needs_migration("h1") is False


def test_migrate_copies_meals_and_plans(migration, local_store, remote):
    local_store.save_meals([Meal(id="m1", title="Taco"), Meal(id="m2", title="Suppe")])
    local_store.upsert_week_plan("2024-01-01", {"Mandag": ["m1"]})
    progress = []

    report = migration.migrate("h1", progress.append)

    assert report.state is MigrationState.DONE
    assert report.meals_migrated == 2
    assert report.plans_migrated == 1
    assert progress == ["Migrerer retter...", "Migrerte 2 retter", "Migrerer ukeplaner...", "Migrerte 1 ukeplaner"]
    assert sorted(m.id for m in remote.list_meals("h1")) == ["m1", "m2"]
    assert remote.list_weekly_plans("h1")["2024-01-01"]["Mandag"] == ["m1"]
    assert migration.state("h1") is MigrationState.DONE
    assert local_store.is_migration_done()
    # Lokale data beholdes som sikkerhetskopi
    assert len(local_store.load_meals(with_defaults=False)) == 2


def test_second_migration_does_no_remote_writes(migration, local_store, db, monkeypatch):
    local_store.save_meals([Meal(id="m1", title="Taco")])
    migration.migrate("h1")

    calls = _count_commits(db, monkeypatch)
    report = migration.migrate("h1")

    assert calls == []
    assert report.writes == 0


def test_failed_migration_can_be_retried(migration, local_store, db, monkeypatch):
    local_store.save_meals([Meal(id="m1", title="Taco")])
    original = db.commit

    def failing(batch):
        raise StoreError("nettverksfeil")

    monkeypatch.setattr(db, "commit", failing)
    with pytest.raises(MigrationError) as excinfo:
        migration.migrate("h1")
    assert excinfo.value.message == "nettverksfeil"
    assert migration.state("h1") is MigrationState.NOT_STARTED
    assert not local_store.is_migration_done()

    monkeypatch.setattr(db, "commit", original)
    assert migration.migrate("h1").meals_migrated == 1


def test_dismiss_marks_done_locally(migration, local_store, remote):
    local_store.save_meals([Meal(id="m1", title="Taco")])
    migration.dismiss()
    assert migration.needs_migration("h1") is False
    assert not remote.is_migration_done("h1")


def test_legacy_meals_move_to_shared_pool_once(migration, db, remote):
    db.set("meals", "gammel-1", {"title": "Fiskesuppe", "ingredients": "torsk"})
    db.set("meals", "gammel-2", {"ingredients": "uten tittel"})

    assert migration.migrate_legacy_meals_to_shared("h1", "Familien Hansen") is True
    shared = remote.list_shared_meals()
    assert [m.title for m in shared] == ["Fiskesuppe"]
    assert shared[0].added_by_household == "Familien Hansen"

    assert migration.migrate_legacy_meals_to_shared("h2", "Familien Olsen") is False
    assert len(remote.list_shared_meals()) == 1


def test_legacy_migration_failure_is_logged_not_raised(migration, db, monkeypatch):
    def failing(batch):
        raise StoreError("nede")

    monkeypatch.setattr(db, "commit", failing)
    assert migration.migrate_legacy_meals_to_shared("h1", "Familien Hansen") is False


def test_migrate_refuses_when_remote_already_has_meals(migration, local_store, remote, db, monkeypatch):
    local_store.upsert_meal(Meal(id="m1", title="Taco"))
    remote.save_meal("h1", Meal(id="x", title="Noe annet"))
    calls = _count_commits(db, monkeypatch)

    with pytest.raises(MigrationError) as excinfo:
        migration.migrate("h1")

    assert excinfo.value.status_code == 409
    assert calls == []
    assert [m.id for m in remote.list_meals("h1")] == ["x"]
    assert migration.state("h1") is MigrationState.NOT_STARTED


def test_migrate_refuses_without_local_data(migration):
    with pytest.raises(MigrationError):
        migration.migrate("h1")


def test_retry_after_partial_failure(migration, local_store, remote, monkeypatch):
    local_store.save_meals([Meal(id="m1", title="Taco")])
    local_store.upsert_week_plan("2024-01-01", {"Mandag": ["m1"]})

    def failing(uid, week_start, plan):
        raise StoreError("tidsavbrudd")

    monkeypatch.setattr(remote, "update_weekly_plan", failing)
    with pytest.raises(MigrationError):
        migration.migrate("h1")
    # Rettene kom fram før feilen
    assert remote.has_meals("h1")

    monkeypatch.undo()
    report = migration.migrate("h1")
    assert report.meals_migrated == 1
    assert remote.list_weekly_plans("h1")["2024-01-01"]["Mandag"] == ["m1"]
