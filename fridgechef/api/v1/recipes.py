from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from fridgechef.config import Settings
from fridgechef.core.models import DietaryRestriction, ImagePayload, Recipe, RecipeBatch, RecipeIngredient
from fridgechef.core.ownership import display_image_url, is_owned, missing_ingredients
from fridgechef.core.pipeline import RecipePipeline
from fridgechef.services.exceptions import FatalAcquisitionError
from fridgechef.services.gateway import OpenAIRecipeGateway, RecipeGateway
from fridgechef.services.metrics import MetricsLogger

router = APIRouter(tags=["recipes"])

# ---- DI helpers --------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_gateway(request: Request, settings: Settings = Depends(get_settings)) -> RecipeGateway:
    return OpenAIRecipeGateway(settings, client=request.app.state.openai)

def get_metrics(settings: Settings = Depends(get_settings)) -> MetricsLogger:
    return MetricsLogger(settings)

def get_pipeline(
    gateway: RecipeGateway = Depends(get_gateway),
    metrics: MetricsLogger = Depends(get_metrics),
) -> RecipePipeline:
    return RecipePipeline(gateway, metrics)

# ---- Models ------------------------------------------------------------------

class RefreshRequest(BaseModel):
    ingredients: List[str]
    filters: List[DietaryRestriction] = Field(default_factory=list)

    @field_validator("ingredients")
    @classmethod
    def _normalize(cls, v: List[str]) -> List[str]:
        return [i.strip().lower() for i in v if i.strip()]


class OwnedIngredient(RecipeIngredient):
    owned: bool = False


class RecipeCard(Recipe):
    """A recipe as the front-end renders it."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ingredients: List[OwnedIngredient]
    display_image_url: str
    missing_count: int = 0


class RecipesResponse(BaseModel):
    ingredients: List[str]
    recipes: List[RecipeCard]


def to_response(batch: RecipeBatch) -> RecipesResponse:
    cards: List[RecipeCard] = []
    for r in batch.recipes:
        cards.append(RecipeCard(
            name=r.name,
            difficulty=r.difficulty,
            prep_time=r.prep_time,
            calories=r.calories,
            ingredients=[
                OwnedIngredient(name=i.name, quantity=i.quantity, owned=is_owned(i.name, batch.ingredients))
                for i in r.ingredients
            ],
            instructions=list(r.instructions),
            image_url=r.image_url,
            display_image_url=display_image_url(r),
            missing_count=len(missing_ingredients(r, batch.ingredients)),
        ))
    return RecipesResponse(ingredients=batch.ingredients, recipes=cards)

# ---- Routes ------------------------------------------------------------------

@router.post("/api/v1/recipes/acquire", response_model=RecipesResponse)
async def acquire_recipes(
    file: UploadFile = File(..., description="Photo of the fridge contents"),
    filters: List[DietaryRestriction] = Form(default=[]),
    pipeline: RecipePipeline = Depends(get_pipeline),
):
    try:
        content = await file.read()
        image = ImagePayload(data=content, mime_type=file.content_type or "")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Could not read upload: {e}")

    try:
        batch = await pipeline.acquire_recipes(image, filters)
    except FatalAcquisitionError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return to_response(batch)


@router.post("/api/v1/recipes/refresh", response_model=RecipesResponse)
async def refresh_recipes(
    request: RefreshRequest,
    pipeline: RecipePipeline = Depends(get_pipeline),
):
    if not request.ingredients:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No ingredients to cook with")
    try:
        batch = await pipeline.refresh_recipes(request.ingredients, request.filters)
    except FatalAcquisitionError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return to_response(batch)
