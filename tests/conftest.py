"""Pytest configuration and fixtures for cookbook_extractor tests.

Fixtures follow pytest best practices:
- Use monkeypatch for environment manipulation
- Use tmp_path for file operations
- Mock the OpenAI client; tests never touch the network
"""

import sys
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from cookbook_extractor.models import (  # noqa: E402
    ExtractionEnvelope,
    ExtractionResponse,
    Ingredient,
    Instruction,
    Recipe,
    RecipeData,
    RecipeMetadata,
)

FIXED_DATE = date(2024, 5, 17)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all COOKBOOK_EXTRACTOR_* environment variables."""
    import os

    for key in list(os.environ.keys()):
        if key.startswith("COOKBOOK_EXTRACTOR_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Provide a helper to set COOKBOOK_EXTRACTOR_* environment variables.

    Example:
        def test_env_loading(mock_env):
            mock_env["MODEL"] = "gpt-5-nano"
            # COOKBOOK_EXTRACTOR_MODEL is now set
    """

    class EnvSetter(dict[str, str]):
        def __setitem__(self, key: str, value: str) -> None:
            super().__setitem__(key, value)
            monkeypatch.setenv(f"COOKBOOK_EXTRACTOR_{key}", value)

    return EnvSetter()


@pytest.fixture
def default_config():
    """Create a default ExtractionConfig instance."""
    from cookbook_extractor.config import ExtractionConfig

    return ExtractionConfig()


# ============================================================================
# HTML Fixtures
# ============================================================================

PADDING = "<p>" + "Lorem ipsum dolor sit amet, consectetur adipiscing elit. " * 40 + "</p>"

JSON_LD_RECIPE = """
<script type="application/ld+json">
{
  "@context": "https://schema.org",
  "@graph": [
    {"@type": "WebPage", "name": "Grandma's Kitchen"},
    {
      "@type": "Recipe",
      "name": "Apple Pie",
      "recipeIngredient": ["6 apples", "200 g flour", "100 g butter"],
      "recipeInstructions": [{"@type": "HowToStep", "text": "Bake it."}],
      "totalTime": "PT1H30M",
      "recipeYield": "8",
      "description": "A classic pie.",
      "image": "https://example.com/pie.jpg"
    }
  ]
}
</script>
"""

RECIPE_SECTION = """
<article class="recipe-card" data-id="42">
  <h2>Ingredients</h2>
  <ul><li>6 apples</li><li>200 g flour</li><li>100 g butter</li></ul>
  <h2>Instructions</h2>
  <ol><li>Preheat the oven and bake the pie for an hour.</li><li>Cool before serving.</li></ol>
  <p>Method: this recipe steps you through how to cook and bake a pie.</p>
  <div class="share-buttons">Share on social</div>
</article>
"""


@pytest.fixture
def structured_data_page() -> str:
    """A large page whose recipe is available as JSON-LD."""
    return (
        f"<html><head>{JSON_LD_RECIPE}</head><body>"
        f"<nav>Home | Recipes</nav>{PADDING}{PADDING}</body></html>"
    )


@pytest.fixture
def section_page() -> str:
    """A page without JSON-LD but with a clear recipe section."""
    return (
        "<html><head><style>body{color:red}</style></head><body>"
        "<header>Site header</header>"
        f"<section><p>Newsletter signup</p></section>{RECIPE_SECTION}"
        "<footer>Footer</footer></body></html>"
    )


@pytest.fixture
def recipe_section_markup() -> str:
    return RECIPE_SECTION


# ============================================================================
# Recipe/Model Fixtures
# ============================================================================


def make_recipe_data(title: str = "Apple Pie", **overrides: Any) -> RecipeData:
    """Build a structurally valid RecipeData."""
    values: dict[str, Any] = {
        "metadata": RecipeMetadata(title=title, source="https://model.invalid/made-up"),
        "ingredients": [Ingredient(item="apples", amount=6), Ingredient(item="flour", unit="g")],
        "instructions": [
            Instruction(step=1, description="Slice the apples.", time="10m"),
            Instruction(step=2, description="Bake.", time="1h"),
        ],
    }
    values.update(overrides)
    return RecipeData(**values)


def make_recipe(title: str = "Apple Pie", **overrides: Any) -> Recipe:
    return Recipe.from_data(make_recipe_data(title, **overrides))


def make_invalid_recipe(title: str = "Broken Pie") -> Recipe:
    """A recipe with no ingredients and a blank step."""
    return make_recipe(
        title,
        ingredients=[],
        instructions=[Instruction(step=1, description=" ")],
    )


@pytest.fixture
def recipe_factory() -> Callable[..., Recipe]:
    return make_recipe


@pytest.fixture
def invalid_recipe_factory() -> Callable[..., Recipe]:
    return make_invalid_recipe


@pytest.fixture
def sample_recipe() -> Recipe:
    return make_recipe()


@pytest.fixture
def fixed_today() -> Callable[[], date]:
    return lambda: FIXED_DATE


# ============================================================================
# Extraction Doubles
# ============================================================================


def recipe_envelope(*recipes: Recipe, confidence: float = 0.9) -> ExtractionEnvelope:
    return ExtractionEnvelope(is_recipe=True, confidence=confidence, recipes=recipes)


class ScriptedExtractor:
    """RecipeExtractor double that replays a list of envelopes.

    Records every call so tests can assert on payloads and feedback.
    """

    def __init__(self, *envelopes: ExtractionEnvelope) -> None:
        self.envelopes = list(envelopes)
        self.calls: list[tuple[str, str]] = []
        self.feedback_calls: list[tuple[str, Recipe, str]] = []

    def _next(self) -> ExtractionEnvelope:
        if not self.envelopes:
            raise AssertionError("ScriptedExtractor ran out of envelopes")
        return self.envelopes.pop(0)

    def extract(self, cleaned_html: str, source_url: str) -> ExtractionEnvelope:
        self.calls.append((cleaned_html, source_url))
        return self._next()

    def extract_with_feedback(
        self,
        cleaned_html: str,
        previous_recipe: Recipe,
        validation_error: str,
        source_url: str = "",
    ) -> ExtractionEnvelope:
        self.feedback_calls.append((cleaned_html, previous_recipe, validation_error))
        return self._next()

    @property
    def total_calls(self) -> int:
        return len(self.calls) + len(self.feedback_calls)


@pytest.fixture
def scripted_extractor() -> type[ScriptedExtractor]:
    return ScriptedExtractor


# ============================================================================
# OpenAI Client Mocking Fixtures
# ============================================================================


@pytest.fixture
def mock_sync_openai_client():
    """Create a mock OpenAI client.

    Configure ``client.responses.parse`` in individual tests.
    """
    client = MagicMock()
    client.responses = MagicMock()
    client.responses.parse = MagicMock()
    return client


def parsed_response(parsed: ExtractionResponse | None, status: str = "completed") -> MagicMock:
    """Build a mock Responses API result carrying ``output_parsed``."""
    response = MagicMock()
    response.status = status
    response.output_parsed = parsed
    return response


@pytest.fixture
def make_parsed_response() -> Callable[..., MagicMock]:
    return parsed_response
