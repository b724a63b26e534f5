"""Recipe data model and extraction envelopes.

The Pydantic models double as the structured-output schema sent to the LLM,
so field descriptions are written for the model as much as for readers.
Parsing is deliberately lenient (blank titles, missing steps and malformed
times are accepted); structural rules live in ``validator.py`` so that a bad
recipe can be sent back to the model with feedback instead of failing the
whole response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^(\d+d\s*)?(\d+h\s*)?(\d+m)?$"
DURATION_PATTERN = r"^\d{1,3}:[0-5]\d$"


class _RecipeModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class CoverImage(_RecipeModel):
    """Main photo of the dish."""

    path: str = Field(description="Image URL or path as it appears in the page")
    alt: str = Field("", description="Alternative text for the image")


class RecipeMetadata(_RecipeModel):
    """Descriptive fields of a recipe."""

    title: str = Field(
        "",
        description="The recipe name exactly as written on the page",
        examples=["Chilli Fish with Tahini"],
    )
    source: str | None = Field(None, description="Source URL (filled in automatically)")
    author: str | None = Field(None, description="Recipe author if stated")
    language: str = Field("en", description="ISO 639-1 language code of the recipe text")
    date_created: date | None = Field(None, description="Filled in automatically; leave empty")
    category: list[str] = Field(
        default_factory=list, description="Course or cuisine categories, e.g. 'Dessert'"
    )
    tags: list[str] = Field(default_factory=list, description="Free-form keywords")
    servings: int | None = Field(None, description="Number of servings if stated")
    prep_time: str | None = Field(None, description="Preparation time like '15m' or '1h 30m'")
    cook_time: str | None = Field(None, description="Cooking time like '45m' or '2h'")
    total_time: str | None = Field(None, description="Total time like '1h 15m'")
    difficulty: str = Field("medium", description="One of 'easy', 'medium' or 'hard'")
    cover_image: CoverImage | None = None


class Substitution(_RecipeModel):
    """An alternative for an ingredient."""

    item: str = Field("", description="Substitute ingredient name")
    amount: float | None = None
    unit: str | None = None
    notes: str | None = None
    ratio: str | None = Field(None, description="Replacement ratio such as '1:1'")


class Ingredient(_RecipeModel):
    """A single ingredient line."""

    item: str = Field("", description="Ingredient name without quantity, e.g. 'plain flour'")
    amount: float | None = Field(None, description="Numeric quantity, e.g. 250 or 0.5")
    unit: str | None = Field(None, description="Unit of measure, e.g. 'g', 'cup', 'tbsp'")
    notes: str | None = Field(None, description="Preparation notes, e.g. 'finely chopped'")
    optional: bool = False
    substitutions: list[Substitution] = Field(default_factory=list)
    component: str = Field(
        "main", description="Part of the dish this belongs to, e.g. 'main', 'sauce', 'dough'"
    )


class ImageMedia(_RecipeModel):
    type: Literal["image"] = "image"
    path: str = ""
    alt: str = ""


class VideoMedia(_RecipeModel):
    type: Literal["video"] = "video"
    path: str = ""
    thumbnail: str | None = None
    duration: str | None = Field(None, description="Video length as MM:SS")


class Instruction(_RecipeModel):
    """A numbered method step."""

    step: int = Field(0, description="Step number starting at 1")
    description: str = Field("", description="What to do in this step")
    time: str | None = Field(
        None, description="Duration of the step like '10m', '1h 30m' or '2d'"
    )
    temperature: str | None = Field(None, description="Oven or cooking temperature, e.g. '180C'")
    media: list[ImageMedia | VideoMedia] = Field(default_factory=list)


class Nutrition(_RecipeModel):
    """Nutrition facts per serving."""

    serving_size: str | None = None
    calories: float | None = None
    protein: float | None = Field(None, description="Grams")
    carbohydrates: float | None = Field(None, description="Grams")
    fat: float | None = Field(None, description="Grams")
    fiber: float | None = Field(None, description="Grams")
    sugar: float | None = Field(None, description="Grams")
    sodium: float | None = Field(None, description="Milligrams")
    notes: str | None = None


class Storage(_RecipeModel):
    """Storage guidance."""

    refrigerator: str | None = None
    freezer: str | None = None
    room_temperature: str | None = None


class RecipeData(_RecipeModel):
    """A recipe as returned by the extractor, without the per-item flag."""

    schema_version: str | None = Field(None, description="Leave empty")
    recipe_version: str | None = Field(None, description="Leave empty")
    metadata: RecipeMetadata | None = None
    description: str = Field("", description="Introductory text about the dish")
    ingredients: list[Ingredient] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list, description="Tools needed")
    instructions: list[Instruction] = Field(default_factory=list)
    nutrition: Nutrition | None = None
    notes: str = Field("", description="Tips and variations")
    storage: Storage | None = None


class Recipe(RecipeData):
    """A recipe record carried through the pipeline.

    Created from ``RecipeData`` with ``is_recipe`` set, then stamped once by
    ``RecipePostProcessor``. Instances are immutable; use ``model_copy``.
    """

    is_recipe: bool = True

    @classmethod
    def from_data(cls, data: RecipeData) -> Recipe:
        return cls.model_validate({**data.model_dump(), "is_recipe": True})

    @property
    def title(self) -> str:
        return self.metadata.title if self.metadata else ""


class ExtractionResponse(BaseModel):
    """Structured output requested from the LLM."""

    is_recipe: bool = Field(
        description="True only if the page contains at least one complete recipe"
    )
    recipe_confidence: float = Field(
        0.0,
        description=(
            "Confidence from 0.0 to 1.0 that the page contains a recipe. Use a "
            "middle value when the text looks like a recipe page but key parts "
            "(ingredients or steps) appear to be missing from the input."
        ),
    )
    internal_reasoning: str | None = Field(
        None, description="One or two sentences explaining the decision"
    )
    recipes: list[RecipeData] = Field(
        default_factory=list,
        description="Every recipe found on the page, in order of appearance",
    )

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True)
class ExtractionEnvelope:
    """Result of one extraction attempt.

    ``is_recipe`` is true exactly when ``recipes`` is non-empty, and
    ``confidence`` is always within [0, 1]. Inconsistent input is normalized
    rather than rejected. ``failed`` marks a call that produced no usable
    answer at all (transport error, refusal, incomplete output).
    """

    is_recipe: bool
    confidence: float = 0.0
    recipes: tuple[Recipe, ...] = ()
    internal_reasoning: str | None = None
    failed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "recipes", tuple(self.recipes))
        object.__setattr__(self, "confidence", min(max(float(self.confidence), 0.0), 1.0))
        if not self.is_recipe and self.recipes:
            object.__setattr__(self, "recipes", ())
        elif self.is_recipe and not self.recipes:
            object.__setattr__(self, "is_recipe", False)

    @classmethod
    def failure(cls, reason: str | None = None) -> ExtractionEnvelope:
        """Envelope for a failed or unusable extraction call."""
        return cls(is_recipe=False, confidence=0.0, internal_reasoning=reason, failed=True)

    @classmethod
    def not_recipe(cls, confidence: float, reason: str | None = None) -> ExtractionEnvelope:
        return cls(is_recipe=False, confidence=confidence, internal_reasoning=reason)

    @classmethod
    def from_response(cls, response: ExtractionResponse) -> ExtractionEnvelope:
        return cls(
            is_recipe=response.is_recipe,
            confidence=response.recipe_confidence,
            recipes=tuple(Recipe.from_data(r) for r in response.recipes),
            internal_reasoning=response.internal_reasoning,
        )


@dataclass(frozen=True)
class ValidationOutcome:
    """Validation verdict for one recipe."""

    recipe: Recipe
    valid: bool
    error_message: str | None = None
    errors: tuple[str, ...] = field(default=())
