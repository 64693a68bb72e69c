import asyncio
from typing import Dict, List, Optional

import pytest

from fridgechef.core.models import Recipe
from fridgechef.core.narration import NarrationEngine
from fridgechef.services.exceptions import GatewayError
from fridgechef.services.gateway import RecipeGateway


def make_recipe(name: str = "Cheese Omelette", steps: int = 3) -> Recipe:
    return Recipe(
        name=name,
        difficulty="Easy",
        prepTime="10 minutes",
        calories=320,
        ingredients=[
            {"name": "Eggs", "quantity": "3 large"},
            {"name": "Cheddar cheese", "quantity": "50 g"},
            {"name": "Butter", "quantity": "1 tbsp"},
        ],
        instructions=[f"Do thing {i + 1}." for i in range(steps)],
    )


class FakeGateway(RecipeGateway):
    """Scripted gateway; records every call it receives."""

    def __init__(
        self,
        ingredients: Optional[List[str]] = None,
        recipes: Optional[List[Recipe]] = None,
        fail_stage: Optional[str] = None,
        failing_images: tuple = (),
    ):
        self.ingredients = ingredients if ingredients is not None else ["eggs", "milk", "cheddar"]
        self.recipes = recipes if recipes is not None else [make_recipe()]
        self.fail_stage = fail_stage
        self.failing_images = set(failing_images)
        self.calls: List[tuple] = []

    async def extract_ingredients(self, image):
        self.calls.append(("ingredients", image.mime_type))
        if self.fail_stage == "ingredients":
            raise GatewayError("vision model unavailable")
        return list(self.ingredients)

    async def generate_recipes(self, ingredients, filters):
        self.calls.append(("recipes", list(ingredients), list(filters)))
        if self.fail_stage == "recipes":
            raise GatewayError("reply did not match schema")
        return [r.model_copy(deep=True) for r in self.recipes]

    async def generate_recipe_image(self, recipe_name):
        self.calls.append(("image", recipe_name))
        if recipe_name in self.failing_images:
            raise GatewayError(f"no image for {recipe_name}")
        return "data:image/png;base64,aW1n"


class FakeEngine(NarrationEngine):
    def __init__(self, fail_on_speak: bool = False):
        self.fail_on_speak = fail_on_speak
        self.spoken: List[str] = []
        self.futures: List[asyncio.Future] = []
        self.pauses = 0
        self.cancels = 0

    def speak(self, text):
        if self.fail_on_speak:
            raise RuntimeError("no audio device")
        fut = asyncio.get_running_loop().create_future()
        self.spoken.append(text)
        self.futures.append(fut)
        return fut

    def pause(self):
        self.pauses += 1

    def cancel(self):
        self.cancels += 1
        for f in self.futures:
            if not f.done():
                f.cancel()

    async def finish_current(self):
        self.futures[-1].set_result(None)
        await asyncio.sleep(0)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def api_env(tmp_path, monkeypatch) -> Dict[str, str]:
    d = tmp_path / "data"
    monkeypatch.setenv("DATA_DIR", str(d))
    monkeypatch.setenv("OPENAI_API_KEY", "test")  # never reaches OpenAI in tests
    return {"data_dir": str(d)}


@pytest.fixture
def recipe_factory():
    return make_recipe


@pytest.fixture
def gateway_factory():
    return FakeGateway


@pytest.fixture
def engine_factory():
    return FakeEngine
