# fridgechef/core/ownership.py
from __future__ import annotations

from typing import Iterable, List
from urllib.parse import quote

from .models import Recipe, RecipeIngredient

PLACEHOLDER_IMAGE = "https://picsum.photos/seed/{seed}/400/300"


def is_owned(ingredient_name: str, owned: Iterable[str]) -> bool:
    """
    An ingredient counts as owned when its name contains any identified
    ingredient, ignoring case. 'Cheddar cheese' is owned if 'cheddar' was seen.
    """
    name = ingredient_name.lower()
    return any(o and o.lower() in name for o in owned)


def missing_ingredients(recipe: Recipe, owned: Iterable[str]) -> List[RecipeIngredient]:
    owned = list(owned)
    return [ing for ing in recipe.ingredients if not is_owned(ing.name, owned)]


def placeholder_image_url(recipe_name: str) -> str:
    return PLACEHOLDER_IMAGE.format(seed=quote(recipe_name, safe=""))


def display_image_url(recipe: Recipe) -> str:
    return recipe.image_url or placeholder_image_url(recipe.name)

