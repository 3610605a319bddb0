from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Last .env ved import slik at uvicorn-arbeidere får samme miljø
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Grunnleggende innstillinger for appen."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.base_dir = Path(__file__).resolve().parent.parent
        self.data_dir = data_dir or Path(os.getenv("DATA_DIR", str(self.base_dir / "data")))
        self.template_dir = self.base_dir / "templates"
        self.local_storage_path = Path(
            os.getenv("LOCAL_STORAGE_PATH", str(self.data_dir / "local_storage.json"))
        )
        self.remote_db_path = Path(os.getenv("REMOTE_DB_PATH", str(self.data_dir / "remote.db")))
        self.remote_enabled = _flag("REMOTE_ENABLED")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.debug = _flag("DEBUG")

        # OAuth-varianten (Google Calendar)
        self.session_secret = os.getenv("SESSION_SECRET", "dinner-plan-secret-key")
        self.google_client_id = os.getenv("GOOGLE_CLIENT_ID", "")
        self.google_client_secret = os.getenv("GOOGLE_CLIENT_SECRET", "")
        self.google_redirect_uri = os.getenv("GOOGLE_REDIRECT_URI", "http://localhost:3000/oauth2callback")
        self.calendar_timezone = os.getenv("CALENDAR_TIMEZONE", "Europe/Oslo")


settings = Settings()
