# fridgechef/core/models.py
from __future__ import annotations

import base64
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------- Filters ----------

class DietaryRestriction(str, Enum):
    VEGETARIAN = "Vegetarian"
    KETO = "Keto"
    GLUTEN_FREE = "Gluten-Free"
    VEGAN = "Vegan"
    LOW_CARB = "Low-Carb"
    HIGH_PROTEIN = "High-Protein"
    PESCATARIAN = "Pescatarian"


Difficulty = Literal["Easy", "Medium", "Hard"]


def normalize_filters(filters: Optional[List[DietaryRestriction]]) -> List[DietaryRestriction]:
    """Drop repeats, keep the order the user picked them in."""
    out: List[DietaryRestriction] = []
    for f in filters or []:
        if f not in out:
            out.append(f)
    return out


# ---------- Recipes ----------

class RecipeIngredient(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Name of the ingredient")
    quantity: str = Field(..., description="Quantity, e.g. '2 cups' or '1 large'")


class Recipe(BaseModel):
    """
    A generated recipe. `name` doubles as the correlation key between the
    generation call and the image call, since nothing assigns ids.
    """
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str = Field(..., min_length=1)
    difficulty: Difficulty
    prep_time: str = Field(..., alias="prepTime", description="Free text, e.g. '30 minutes'")
    calories: int = Field(..., ge=0, description="Approximate calories per serving")
    ingredients: List[RecipeIngredient]
    instructions: List[str]
    image_url: Optional[str] = Field(None, alias="imageUrl")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Recipe.name cannot be blank")
        return v


class RecipeList(BaseModel):
    """Shape of the structured generation reply."""
    recipes: List[Recipe]


class RecipeBatch(BaseModel):
    """One pipeline run: the identified ingredients plus the finished recipes."""
    ingredients: List[str] = Field(default_factory=list)
    recipes: List[Recipe] = Field(default_factory=list)


# ---------- Uploads ----------

class ImagePayload(BaseModel):
    data: bytes
    mime_type: str = "image/jpeg"

    @field_validator("data")
    @classmethod
    def _not_empty(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("ImagePayload.data cannot be empty")
        return v

    @field_validator("mime_type")
    @classmethod
    def _image_only(cls, v: str) -> str:
        v = v.strip().lower()
        if not v.startswith("image/"):
            raise ValueError(f"Not an image content type: {v!r}")
        return v

    def data_url(self) -> str:
        b64 = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{b64}"
