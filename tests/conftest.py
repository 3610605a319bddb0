import pytest

from core.config import Settings
from core.database import DocumentDatabase
from services.local_store import LocalPlannerStore, LocalStorage
from services.remote_store import RemoteStore


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture
def local_store(storage):
    return LocalPlannerStore(storage)


@pytest.fixture
def db(tmp_path):
    database = DocumentDatabase(tmp_path / "remote.db").open()
    yield database
    database.close()


@pytest.fixture
def remote(db):
    return RemoteStore(db)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    for key in ("LOCAL_STORAGE_PATH", "REMOTE_DB_PATH", "REMOTE_ENABLED", "DATA_DIR"):
        monkeypatch.delenv(key, raising=False)
    cfg = Settings(data_dir=tmp_path)
    cfg.session_secret = "test-secret"
    return cfg
