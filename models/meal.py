from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DELETED_MEAL_TITLE = "Slettet rett"


class Meal(BaseModel):
    """En gjenbrukbar rett (oppskrift) i husstandens eget bibliotek."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Opak ID")
    title: str = Field(..., min_length=1, description="Navn på retten")
    ingredients: str = Field("", description="Ingredienser, én per linje")
    steps: Optional[str] = Field(None, description="Fremgangsmåte, ett steg per linje")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="Lenke til bilde")

    @field_validator("ingredients", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def ingredient_lines(self) -> list[str]:
        return [line.strip() for line in self.ingredients.split("\n") if line.strip()]

    def step_lines(self) -> list[str]:
        if not self.steps:
            return []
        return [line.strip() for line in self.steps.split("\n") if line.strip()]

    def to_document(self) -> Dict[str, Any]:
        """Feltene slik de lagres i dokumentlageret (uten ID)."""
        return {
            "title": self.title,
            "ingredients": self.ingredients,
            "imageUrl": self.image_url,
            "steps": self.steps,
        }


class MealDraft(BaseModel):
    """Innsendt skjema for ny eller redigert rett."""

    title: str
    ingredients: str = ""
    steps: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("title", "ingredients", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else ("" if value is None else value)

    @field_validator("steps", "image_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return value or None

    def to_meal(self, meal_id: str) -> Meal:
        return Meal(
            id=meal_id,
            title=self.title,
            ingredients=self.ingredients,
            steps=self.steps,
            image_url=self.image_url,
        )


class SharedMeal(Meal):
    """Rett i fellesbiblioteket, med opphav."""

    added_by: str = Field("", alias="addedBy", description="Husstands-ID som delte retten")
    added_by_household: str = Field("", alias="addedByHousehold", description="Visningsnavn for husstanden")
    added_at: Optional[datetime] = Field(None, alias="addedAt")
