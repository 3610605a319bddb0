from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserProfile(BaseModel):
    """Husstandens profil, én per innlogget konto."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(..., description="Kontaktadresse")
    household_name: str = Field(..., alias="householdName", description="Visningsnavn for husstanden")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
