import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.config import Settings, settings as default_settings
from core.database import DocumentDatabase
from core.errors import AuthError, PlannerError
from core.logging import init_logging
from routes import households, meals, migration, plans, shared
from services.auth_messages import auth_error_message
from services.local_store import LocalPlannerStore, LocalStorage
from services.migration_service import MigrationService
from services.planner_service import PlannerService
from services.profile_service import ProfileService
from services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

_AUTH_CONFLICTS = {"auth/email-already-in-use", "auth/household-exists"}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    init_logging(settings.log_level)

    app = FastAPI(title="Middag", debug=settings.debug)
    app.state.settings = settings
    app.state.db = None
    app.state.planner = None
    app.state.migration = None
    app.state.profiles = None

    @app.on_event("startup")
    def _startup() -> None:
        """Bygg lagrene og tjenestene én gang og legg dem på app.state."""
        local = LocalPlannerStore(LocalStorage(settings.local_storage_path))
        remote = None
        seeding_blocked = None
        if settings.remote_enabled:
            db = DocumentDatabase(settings.remote_db_path).open()
            app.state.db = db
            remote = RemoteStore(db)
            app.state.migration = MigrationService(local, remote)
            app.state.profiles = ProfileService(remote)
            seeding_blocked = app.state.migration.needs_migration
        app.state.planner = PlannerService(local, remote, seeding_blocked=seeding_blocked)
        logger.info("Middag startet i %s modus", "sky" if remote else "lokal")

    @app.on_event("shutdown")
    def _shutdown() -> None:
        if app.state.planner is not None:
            app.state.planner.close()
        if app.state.db is not None:
            app.state.db.close()

    @app.exception_handler(PlannerError)
    async def planner_error_handler(request: Request, exc: PlannerError):
        return JSONResponse({"detail": exc.message}, status_code=exc.status_code)

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        status = 409 if exc.code in _AUTH_CONFLICTS else 400
        return JSONResponse({"detail": auth_error_message(exc.code), "code": exc.code}, status_code=status)

    # Routers
    app.include_router(meals.router, prefix="/api", tags=["meals"])
    app.include_router(plans.router, prefix="/api", tags=["plans"])
    app.include_router(shared.router, prefix="/api", tags=["shared"])
    app.include_router(households.router, prefix="/api", tags=["households"])
    app.include_router(migration.router, prefix="/api", tags=["migration"])

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Enkel helsesjekk for lokal utvikling."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="127.0.0.1", port=8000, reload=True)
