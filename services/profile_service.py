from __future__ import annotations

import logging
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from core.errors import AuthError, PlannerError, StoreError
from models.profile import UserProfile
from services.remote_store import RemoteStore

logger = logging.getLogger(__name__)


class ProfileService:
    """Husstandsprofiler i skylagringen (én per konto)."""

    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    def register(self, uid: str, email: str, household_name: str) -> UserProfile:
        household_name = (household_name or "").strip()
        if not household_name:
            raise AuthError("auth/missing-household")
        try:
            normalized = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as exc:
            raise AuthError("auth/invalid-email") from exc
        try:
            if self.remote.find_profile_by_email(normalized) is not None:
                raise AuthError("auth/email-already-in-use")
            if self.remote.get_user_profile(uid) is not None:
                raise AuthError("auth/household-exists")
            self.remote.create_user_profile(uid, normalized, household_name)
            profile = self.remote.get_user_profile(uid)
        except StoreError as exc:
            logger.error("Kunne ikke opprette profil for %s: %s", uid, exc)
            raise PlannerError("Kunne ikke opprette husstand", status_code=503) from exc
        logger.info("Ny husstand registrert: %s (%s)", household_name, uid)
        return profile  # type: ignore

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        try:
            return self.remote.get_user_profile(uid)
        except StoreError as exc:
            logger.error("Kunne ikke hente profil for %s: %s", uid, exc)
            raise PlannerError("Kunne ikke hente husstand", status_code=503) from exc


__all__ = ["ProfileService"]
