from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import pytest
from google_auth_oauthlib.flow import Flow
from googleapiclient.errors import HttpError
from oauthlib.oauth2.rfc6749.errors import InvalidGrantError

import services.google_calendar as google_calendar
from core.errors import CalendarError
from services.google_calendar import DINNER_PREFIX, MAX_RESULTS, GoogleCalendarClient, SessionTokenStore


class _Call:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.result


class FakeEvents:
    def __init__(self):
        self.inserted = []
        self.list_kwargs = None
        self.error = None
        self.items = []

    def insert(self, calendarId, body):
        self.inserted.append((calendarId, body))
        return _Call({"id": "ev1", "htmlLink": "https://calendar.example/ev1"}, self.error)

    def list(self, **kwargs):
        self.list_kwargs = kwargs
        return _Call({"items": self.items}, self.error)


class FakeService:
    def __init__(self, events):
        self._events = events

    def events(self):
        return self._events


@pytest.fixture
def calendar(settings):
    settings.google_client_id = "klient-id"
    settings.google_client_secret = "klient-hemmelighet"
    return GoogleCalendarClient(settings)


@pytest.fixture
def events(monkeypatch):
    fake = FakeEvents()
    built = []

    def fake_build(name, version, credentials=None, cache_discovery=True):
        built.append(credentials)
        return FakeService(fake)

    monkeypatch.setattr(google_calendar, "build", fake_build)
    fake.built = built
    return fake


def _http_error(status=500):
    return HttpError(SimpleNamespace(status=status, reason="Server Error"), b"boom")


def test_authorization_url_uses_pkce(calendar):
    url, verifier = calendar.authorization_url()
    query = parse_qs(urlparse(url).query)
    assert verifier
    assert query["client_id"] == ["klient-id"]
    assert query["access_type"] == ["offline"]
    assert query["code_challenge_method"] == ["S256"]
    assert "calendar.events" in query["scope"][0]


def test_exchange_code_reuses_verifier_and_keeps_secret_out(calendar, monkeypatch):
    seen = {}

    def fake_fetch_token(self, **kwargs):
        seen["code"] = kwargs.get("code")
        seen["verifier"] = self.code_verifier

    creds = SimpleNamespace(
        token="ACCESS",
        refresh_token="REFRESH",
        token_uri=google_calendar.TOKEN_URI,
        client_id="klient-id",
        client_secret="klient-hemmelighet",
        scopes=None,
    )
    monkeypatch.setattr(Flow, "fetch_token", fake_fetch_token)
    monkeypatch.setattr(Flow, "credentials", property(lambda self: creds))

    tokens = calendar.exchange_code("kode-1", "verifier-123")
    assert seen == {"code": "kode-1", "verifier": "verifier-123"}
    assert tokens["token"] == "ACCESS"
    assert tokens["refresh_token"] == "REFRESH"
    assert "client_secret" not in tokens


def test_exchange_code_maps_oauth_errors(calendar, monkeypatch):
    def failing_fetch_token(self, **kwargs):
        raise InvalidGrantError()

    monkeypatch.setattr(Flow, "fetch_token", failing_fetch_token)
    with pytest.raises(CalendarError):
        calendar.exchange_code("ugyldig", "verifier-123")


def test_create_dinner_event(calendar, events):
    created = calendar.create_dinner_event({"token": "ACCESS"}, {"summary": "Dinner: Taco"})
    assert created == {"id": "ev1", "htmlLink": "https://calendar.example/ev1"}
    assert events.inserted == [("primary", {"summary": "Dinner: Taco"})]
    creds = events.built[0]
    assert creds.token == "ACCESS"
    assert creds.client_secret == "klient-hemmelighet"


def test_list_dinner_plans_query(calendar, events):
    events.items = [
        {
            "id": "e1",
            "summary": "Dinner: Taco",
            "start": {"dateTime": "2024-05-01T18:00:00+02:00"},
            "end": {"dateTime": "2024-05-01T20:00:00+02:00"},
        }
    ]
    plans = calendar.list_dinner_plans({"token": "ACCESS"})
    assert [plan["title"] for plan in plans] == ["Dinner: Taco"]
    assert plans[0]["start"] == "2024-05-01T18:00:00+02:00"
    kwargs = events.list_kwargs
    assert kwargs["q"] == DINNER_PREFIX
    assert kwargs["maxResults"] == MAX_RESULTS
    assert kwargs["orderBy"] == "startTime"
    assert kwargs["singleEvents"] is True
    assert kwargs["calendarId"] == "primary"


@pytest.mark.parametrize("method, args", [
    ("create_dinner_event", ({"summary": "Dinner: Taco"},)),
    ("list_dinner_plans", ()),
])
def test_http_errors_become_calendar_errors(calendar, events, method, args):
    events.error = _http_error()
    with pytest.raises(CalendarError):
        getattr(calendar, method)({"token": "ACCESS"}, *args)


def test_token_store():
    store = SessionTokenStore()
    sid = store.put({"token": "ACCESS"})
    assert store.get(sid) == {"token": "ACCESS"}
    assert store.get(None) is None
    assert store.get("ukjent") is None
    store.discard(sid)
    assert store.get(sid) is None
    assert len(store) == 0
