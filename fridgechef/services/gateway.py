from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import ValidationError

from .clients import AsyncOpenAI, build_openai_client
from .exceptions import GatewayError
from fridgechef.config import Settings
from fridgechef.core.models import DietaryRestriction, ImagePayload, Recipe, RecipeList

logger = logging.getLogger(__name__)


INGREDIENTS_PROMPT = (
    "Analyze this image of a fridge's contents. Identify all edible food items and ingredients. "
    "Return a comma-separated list of the items you find. Be concise and focus only on the ingredients. "
    "For example: 'eggs, milk, cheddar cheese, lettuce, tomatoes, chicken breast'."
)

_INGREDIENT_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Name of the ingredient."},
        "quantity": {"type": "string", "description": "Quantity of the ingredient, e.g., '2 cups' or '1 large'."},
    },
    "required": ["name", "quantity"],
    "additionalProperties": False,
}

RECIPE_LIST_SCHEMA = {
    "type": "object",
    "properties": {
        "recipes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "The name of the recipe."},
                    "difficulty": {
                        "type": "string",
                        "enum": ["Easy", "Medium", "Hard"],
                        "description": "Difficulty level: Easy, Medium, or Hard.",
                    },
                    "prepTime": {
                        "type": "string",
                        "description": "Estimated preparation and cooking time, e.g., '30 minutes'.",
                    },
                    "calories": {"type": "integer", "description": "Approximate calorie count per serving."},
                    "ingredients": {
                        "type": "array",
                        "description": "A list of all ingredients required for the recipe.",
                        "items": _INGREDIENT_SCHEMA,
                    },
                    "instructions": {
                        "type": "array",
                        "description": "Step-by-step cooking instructions.",
                        "items": {"type": "string"},
                    },
                },
                "required": ["name", "difficulty", "prepTime", "calories", "ingredients", "instructions"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["recipes"],
    "additionalProperties": False,
}


def parse_ingredient_text(text: str) -> List[str]:
    """'Eggs, Milk ,, cheddar' -> ['eggs', 'milk', 'cheddar']"""
    return [part.strip().lower() for part in text.split(",") if part.strip()]


def build_recipe_prompt(ingredients: List[str], filters: List[DietaryRestriction], count: int = 5) -> str:
    filters_text = ""
    if filters:
        filters_text = f" The user has the following dietary restrictions: {', '.join(f.value for f in filters)}."
    return (
        f"Based on the following ingredients: {', '.join(ingredients)}, suggest {count} diverse recipes."
        f"{filters_text} For each recipe, provide a name, difficulty (Easy, Medium, or Hard), "
        "estimated prep time, approximate calorie count, a list of all required ingredients with quantities, "
        "and step-by-step instructions. Some of the provided ingredients might not be enough for a full recipe, "
        "so feel free to include other common ingredients as 'missing'."
    )


def build_image_prompt(recipe_name: str) -> str:
    return (
        f'A delicious and professional photo of "{recipe_name}", beautifully plated on a clean, modern dish. '
        "The lighting should be bright and natural, highlighting the textures of the food."
    )


def parse_recipe_reply(content: Optional[str]) -> List[Recipe]:
    """
    Validate a structured generation reply. Every field is checked for presence
    and type; anything off raises GatewayError with the validation detail.
    """
    if not content or not content.strip():
        raise GatewayError("Recipe generation returned an empty reply")
    try:
        return RecipeList.model_validate_json(content.strip()).recipes
    except ValidationError as e:
        raise GatewayError(f"Recipe reply did not match the expected shape: {e}") from e


class RecipeGateway(ABC):
    """The three calls the pipeline makes against the generative service."""

    @abstractmethod
    async def extract_ingredients(self, image: ImagePayload) -> List[str]: ...

    @abstractmethod
    async def generate_recipes(self, ingredients: List[str], filters: List[DietaryRestriction]) -> List[Recipe]: ...

    @abstractmethod
    async def generate_recipe_image(self, recipe_name: str) -> str: ...


class OpenAIRecipeGateway(RecipeGateway):
    """
    Single-shot adapter over the OpenAI API. No retries: the shared client is built
    with max_retries=0 and every failure surfaces as GatewayError.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self._client = client or build_openai_client(settings)
        self._vision_model = settings.openai_model_vision
        self._recipe_model = settings.openai_model_recipes
        self._image_model = settings.openai_model_image
        self._image_size = settings.openai_image_size
        self._recipe_count = settings.recipe_count

    async def extract_ingredients(self, image: ImagePayload) -> List[str]:
        try:
            resp = await self._client.chat.completions.create(
                model=self._vision_model,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": image.data_url()}},
                        {"type": "text", "text": INGREDIENTS_PROMPT},
                    ],
                }],
            )
            text = resp.choices[0].message.content
        except Exception as e:
            logger.error("Error analyzing fridge contents: %s", e)
            raise GatewayError(f"Failed to analyze image: {e}") from e
        if not text:
            raise GatewayError("Ingredient extraction returned no text")
        return parse_ingredient_text(text)

    async def generate_recipes(self, ingredients: List[str], filters: List[DietaryRestriction]) -> List[Recipe]:
        prompt = build_recipe_prompt(ingredients, filters, self._recipe_count)
        try:
            resp = await self._client.chat.completions.create(
                model=self._recipe_model,
                messages=[{"role": "user", "content": prompt}],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "recipe_list", "strict": True, "schema": RECIPE_LIST_SCHEMA},
                },
            )
            content = resp.choices[0].message.content
        except Exception as e:
            logger.error("Error generating recipes: %s", e)
            raise GatewayError(f"Failed to generate recipes: {e}") from e
        return parse_recipe_reply(content)

    async def generate_recipe_image(self, recipe_name: str) -> str:
        try:
            resp = await self._client.images.generate(
                model=self._image_model,
                prompt=build_image_prompt(recipe_name),
                size=self._image_size,
                n=1,
            )
        except Exception as e:
            logger.error('Error generating image for recipe "%s": %s', recipe_name, e)
            raise GatewayError(f"Failed to generate an image for the recipe: {recipe_name}.") from e
        for item in resp.data or []:
            if getattr(item, "b64_json", None):
                return f"data:image/png;base64,{item.b64_json}"
        raise GatewayError(f"No image data found in response for recipe: {recipe_name}.")
