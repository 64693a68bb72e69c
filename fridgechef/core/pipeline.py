# fridgechef/core/pipeline.py
from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from typing import List, Optional

from .models import DietaryRestriction, ImagePayload, Recipe, RecipeBatch, normalize_filters
from fridgechef.services.exceptions import DegradedImageError, FatalAcquisitionError
from fridgechef.services.gateway import RecipeGateway
from fridgechef.services.metrics import MetricsLogger

logger = logging.getLogger(__name__)


class RecipePipeline:
    """
    Ingredients -> recipes -> images.

    Failure policy:
    - Ingredient extraction and recipe generation are fatal. They raise
      FatalAcquisitionError and nothing is returned.
    - Image synthesis runs once per recipe, all at the same time. A failure
      there only costs that recipe its image_url.

    Nothing is cached; each refresh regenerates recipes and images.
    """

    def __init__(self, gateway: RecipeGateway, metrics: Optional[MetricsLogger] = None):
        self._gateway = gateway
        self._metrics = metrics

    async def acquire_recipes(
        self,
        image: ImagePayload,
        filters: Optional[List[DietaryRestriction]] = None,
    ) -> RecipeBatch:
        with self._timed("extract_ingredients", {"bytes": len(image.data)}) as ctx:
            try:
                ingredients = await self._gateway.extract_ingredients(image)
            except Exception as e:
                raise FatalAcquisitionError("ingredients", "Failed to analyze image.") from e
            ctx["count"] = len(ingredients)
        logger.info("Identified %d ingredients", len(ingredients))
        return await self.refresh_recipes(ingredients, filters)

    async def refresh_recipes(
        self,
        ingredients: List[str],
        filters: Optional[List[DietaryRestriction]] = None,
    ) -> RecipeBatch:
        active = normalize_filters(filters)
        with self._timed("generate_recipes", {"filters": [f.value for f in active]}) as ctx:
            try:
                recipes = await self._gateway.generate_recipes(list(ingredients), active)
            except Exception as e:
                raise FatalAcquisitionError("recipes", "Failed to generate recipes.") from e
            ctx["count"] = len(recipes)

        with self._timed("recipe_images", {"count": len(recipes)}) as ctx:
            await asyncio.gather(*(self._attach_image(r) for r in recipes))
            ctx["with_image"] = sum(1 for r in recipes if r.image_url)

        return RecipeBatch(ingredients=list(ingredients), recipes=recipes)

    async def _attach_image(self, recipe: Recipe) -> Recipe:
        try:
            recipe.image_url = await self._synthesize(recipe.name)
        except DegradedImageError as e:
            logger.warning("Could not generate image for %s: %s", e.recipe_name, e)
        return recipe

    async def _synthesize(self, recipe_name: str) -> str:
        try:
            return await self._gateway.generate_recipe_image(recipe_name)
        except Exception as e:
            raise DegradedImageError(recipe_name, str(e) or type(e).__name__) from e

    def _timed(self, name: str, extra: dict):
        if self._metrics is None:
            return nullcontext({})
        return self._metrics.timed(name, extra)
