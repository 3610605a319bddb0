from __future__ import annotations

import logging

from fastapi import APIRouter, Form, Request

from routes.common import get_migration, get_planner, get_profiles, resolve_household
from services.remote_store import make_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/households", status_code=201)
async def register_household(
    request: Request,
    email: str = Form(...),
    household_name: str = Form(...),
    household_id: str | None = Form(None),
):
    """Registrer en ny husstand med e-post og visningsnavn."""
    uid = household_id or make_id()
    profile = get_profiles(request).register(uid, email, household_name)
    return {"household_id": uid, "email": profile.email, "household_name": profile.household_name}


@router.get("/session")
async def session(request: Request, household_id: str | None = None):
    """Oppstart av en økt: modus, husstand, valgt uke og om migrering bør tilbys."""
    planner = get_planner(request)
    if not planner.uses_remote:
        return {
            "mode": "local",
            "household": None,
            "current_week": planner.current_week_start(),
            "needs_migration": False,
        }

    household = resolve_household(request, household_id)
    profile = get_profiles(request).get_profile(household)
    migration = get_migration(request)
    if migration.migrate_legacy_meals_to_shared(household, profile.household_name):
        logger.info("Gamle felles retter flyttet til fellesbiblioteket av %s", household)
    return {
        "mode": "remote",
        "household": {"id": household, "email": profile.email, "household_name": profile.household_name},
        "current_week": planner.current_week_start(household),
        "needs_migration": migration.needs_migration(household),
        "error": planner.pop_error(household),
    }
