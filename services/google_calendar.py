"""Google Kalender-klient for OAuth-varianten: innlogging, opprette og liste middager."""

from __future__ import annotations

import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from core.config import Settings
from core.errors import CalendarError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"

DINNER_DURATION_HOURS = 2
DINNER_PREFIX = "Dinner:"
DEFAULT_DESCRIPTION = "Dinner plan created by Dinner Plan app"
MAX_RESULTS = 20


def build_dinner_event(
    title: str,
    date: str,
    time: str,
    description: str | None = None,
    location: str | None = None,
    time_zone: str = "Europe/Oslo",
) -> Dict[str, Any]:
    """Hendelse på to timer med e-postpåminnelse dagen før og varsel en time før.

    Ugyldig dato eller klokkeslett gir ValueError.
    """
    start = datetime.fromisoformat(f"{date}T{time}")
    end = start + timedelta(hours=DINNER_DURATION_HOURS)
    return {
        "summary": f"{DINNER_PREFIX} {title}",
        "description": description or DEFAULT_DESCRIPTION,
        "location": location or "",
        "start": {"dateTime": start.isoformat(), "timeZone": time_zone},
        "end": {"dateTime": end.isoformat(), "timeZone": time_zone},
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 60},
            ],
        },
    }


def summarize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    start = event.get("start") or {}
    end = event.get("end") or {}
    return {
        "id": event.get("id"),
        "title": event.get("summary"),
        "start": start.get("dateTime") or start.get("date"),
        "end": end.get("dateTime") or end.get("date"),
        "description": event.get("description"),
        "location": event.get("location"),
        "link": event.get("htmlLink"),
    }


class GoogleCalendarClient:
    """Tynn innpakning rundt google-auth-oauthlib og Calendar API v3.

    Tokens lagres ikke her; de ligger i sesjonen og sendes inn ved hvert kall.
    """

    def __init__(self, settings: Settings) -> None:
        self.client_id = settings.google_client_id
        self.client_secret = settings.google_client_secret
        self.redirect_uri = settings.google_redirect_uri
        self.time_zone = settings.calendar_timezone

    def _flow(self, code_verifier: Optional[str] = None) -> Flow:
        config = {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }
        return Flow.from_client_config(
            config,
            scopes=SCOPES,
            redirect_uri=self.redirect_uri,
            code_verifier=code_verifier,
            autogenerate_code_verifier=code_verifier is None,
        )

    def authorization_url(self) -> Tuple[str, Optional[str]]:
        """Samtykke-URL og PKCE-verifikatoren som må brukes ved utvekslingen."""
        flow = self._flow()
        url, _state = flow.authorization_url(access_type="offline", prompt="consent")
        return url, flow.code_verifier

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> Dict[str, Any]:
        flow = self._flow(code_verifier)
        try:
            flow.fetch_token(code=code)
        except (OAuth2Error, GoogleAuthError, ValueError) as exc:
            logger.error("Kunne ikke hente tilgangstoken: %s", exc)
            raise CalendarError("Authentication failed") from exc
        creds = flow.credentials
        return {
            "token": creds.token,
            "refresh_token": creds.refresh_token,
            "token_uri": creds.token_uri,
            "scopes": list(creds.scopes or SCOPES),
        }

    def _service(self, tokens: Dict[str, Any]):
        # Klienthemmeligheten hentes fra innstillingene, aldri fra økten
        creds = Credentials(
            token=tokens.get("token"),
            refresh_token=tokens.get("refresh_token"),
            token_uri=tokens.get("token_uri", TOKEN_URI),
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=tokens.get("scopes", SCOPES),
        )
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def create_dinner_event(self, tokens: Dict[str, Any], event: Dict[str, Any]) -> Dict[str, Any]:
        try:
            created = self._service(tokens).events().insert(calendarId="primary", body=event).execute()
        except (HttpError, GoogleAuthError) as exc:
            logger.error("Kunne ikke opprette kalenderhendelse: %s", exc)
            raise CalendarError(str(exc)) from exc
        return {"id": created.get("id"), "htmlLink": created.get("htmlLink")}

    def list_dinner_plans(self, tokens: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            response = (
                self._service(tokens)
                .events()
                .list(
                    calendarId="primary",
                    timeMin=datetime.now(timezone.utc).isoformat(),
                    maxResults=MAX_RESULTS,
                    singleEvents=True,
                    orderBy="startTime",
                    q=DINNER_PREFIX,
                )
                .execute()
            )
        except (HttpError, GoogleAuthError) as exc:
            logger.error("Kunne ikke hente kalenderhendelser: %s", exc)
            raise CalendarError(str(exc)) from exc
        return [summarize_event(event) for event in response.get("items", [])]


class SessionTokenStore:
    """Tokens per innloggingsøkt, holdt i minnet på serveren.

    Sesjonskapselen bærer bare den tilfeldige øktnøkkelen.
    """

    def __init__(self) -> None:
        self._tokens: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def put(self, tokens: Dict[str, Any]) -> str:
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self._tokens[session_id] = tokens
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not session_id:
            return None
        with self._lock:
            return self._tokens.get(session_id)

    def discard(self, session_id: Optional[str]) -> None:
        if session_id:
            with self._lock:
                self._tokens.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._tokens)
