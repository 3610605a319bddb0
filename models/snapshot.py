"""Lagrede dataformer fra tidligere og nåværende skjemaversjoner."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class CurrentPlansSnapshot(BaseModel):
    kind: Literal["current_plans"] = "current_plans"
    plans: Dict[str, Any] = Field(default_factory=dict)


class LegacySinglePlanSnapshot(BaseModel):
    """Én flat ukeplan, med ukestart lagret separat."""

    kind: Literal["legacy_single_plan"] = "legacy_single_plan"
    plan: Any = None
    week_start: Optional[str] = None


class LegacyTopLevelMealsSnapshot(BaseModel):
    """Retter fra den gamle, felles samlingen utenfor husstandene."""

    kind: Literal["legacy_top_level_meals"] = "legacy_top_level_meals"
    meals: List[Dict[str, Any]] = Field(default_factory=list)


StorageSnapshot = Annotated[
    Union[CurrentPlansSnapshot, LegacySinglePlanSnapshot, LegacyTopLevelMealsSnapshot],
    Field(discriminator="kind"),
]
