"""OAuth-varianten: planlegg middag direkte i Google Kalender."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.sessions import SessionMiddleware

from core.config import Settings, settings as default_settings
from core.errors import CalendarError
from core.logging import init_logging
from services.google_calendar import GoogleCalendarClient, SessionTokenStore, build_dinner_event

logger = logging.getLogger(__name__)

# Grenser per klientadresse, delt innen hver gruppe
AUTH_LIMIT = "10 per 15 minutes"
API_LIMIT = "100 per 15 minutes"
PAGE_LIMIT = "200 per 15 minutes"


def create_calendar_app(settings: Settings | None = None, calendar_client=None) -> FastAPI:
    settings = settings or default_settings
    init_logging(settings.log_level)

    app = FastAPI(title="Middag i kalenderen", debug=settings.debug)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        same_site="lax",
        https_only=not settings.debug and settings.google_redirect_uri.startswith("https"),
    )
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    templates = Jinja2Templates(directory=str(settings.template_dir))
    client = calendar_client or GoogleCalendarClient(settings)
    token_store = SessionTokenStore()
    app.state.calendar_client = client
    app.state.token_store = token_store

    auth_limit = limiter.shared_limit(AUTH_LIMIT, scope="auth")
    api_limit = limiter.shared_limit(API_LIMIT, scope="api")
    page_limit = limiter.shared_limit(PAGE_LIMIT, scope="pages")

    def require_tokens(request: Request) -> dict:
        tokens = token_store.get(request.session.get("sid"))
        if not request.session.get("authenticated") or not tokens:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return tokens

    @app.get("/", response_class=HTMLResponse)
    @page_limit
    async def index(request: Request):
        """Startside med innlogging."""
        context = {"request": request, "authenticated": bool(request.session.get("authenticated"))}
        return templates.TemplateResponse("calendar/index.html", context)

    @app.get("/auth/google")
    @auth_limit
    async def auth_google(request: Request):
        url, code_verifier = client.authorization_url()
        request.session["code_verifier"] = code_verifier
        return RedirectResponse(url, status_code=302)

    @app.get("/oauth2callback")
    @auth_limit
    async def oauth2callback(request: Request, code: str | None = None):
        if not code:
            return PlainTextResponse("Authorization code not found", status_code=400)
        try:
            tokens = client.exchange_code(code, request.session.pop("code_verifier", None))
        except CalendarError:
            return PlainTextResponse("Authentication failed", status_code=500)
        token_store.discard(request.session.get("sid"))
        request.session["sid"] = token_store.put(tokens)
        request.session["authenticated"] = True
        logger.info("Innlogget mot Google Kalender")
        return RedirectResponse("/dashboard", status_code=302)

    @app.get("/dashboard", response_class=HTMLResponse)
    @page_limit
    async def dashboard(request: Request):
        if not request.session.get("authenticated"):
            return RedirectResponse("/", status_code=302)
        return templates.TemplateResponse("calendar/dashboard.html", {"request": request})

    @app.post("/api/dinner-plan")
    @api_limit
    async def create_dinner_plan(
        request: Request,
        title: str = Form(""),
        date: str = Form(""),
        time: str = Form(""),
        description: str | None = Form(None),
        location: str | None = Form(None),
    ):
        tokens = require_tokens(request)
        if not title or not date or not time:
            raise HTTPException(status_code=400, detail="Title, date, and time are required")
        try:
            event = build_dinner_event(title, date, time, description, location, settings.calendar_timezone)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date or time")
        try:
            created = client.create_dinner_event(tokens, event)
        except CalendarError as exc:
            return JSONResponse(
                {"error": "Failed to create calendar event", "details": str(exc)}, status_code=500
            )
        return {
            "success": True,
            "message": "Dinner plan added to Google Calendar",
            "eventId": created.get("id"),
            "eventLink": created.get("htmlLink"),
        }

    @app.get("/api/dinner-plans")
    @api_limit
    async def list_dinner_plans(request: Request):
        tokens = require_tokens(request)
        try:
            plans = client.list_dinner_plans(tokens)
        except CalendarError as exc:
            return JSONResponse({"error": "Failed to fetch dinner plans", "details": str(exc)}, status_code=500)
        return {"dinnerPlans": plans}

    @app.get("/logout")
    @page_limit
    async def logout(request: Request):
        token_store.discard(request.session.get("sid"))
        request.session.clear()
        return RedirectResponse("/", status_code=302)

    @app.get("/api/auth/status")
    @api_limit
    async def auth_status(request: Request):
        return {"authenticated": bool(request.session.get("authenticated"))}

    return app


app = create_calendar_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("calendar_app:app", host="127.0.0.1", port=3000, reload=True)
