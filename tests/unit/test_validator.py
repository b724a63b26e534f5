"""Unit tests for cookbook_extractor.validator and postprocess modules."""

from collections.abc import Callable
from datetime import date

import pytest

from conftest import make_recipe
from cookbook_extractor.exceptions import RecipeValidationError
from cookbook_extractor.models import (
    CoverImage,
    ImageMedia,
    Ingredient,
    Instruction,
    Nutrition,
    Recipe,
    RecipeMetadata,
    Substitution,
    VideoMedia,
)
from cookbook_extractor.postprocess import RecipePostProcessor
from cookbook_extractor.validator import RecipeValidator


@pytest.fixture
def validator() -> RecipeValidator:
    return RecipeValidator()


class TestRecipeValidator:
    """Tests for RecipeValidator rules."""

    def test_valid_recipe(self, validator: RecipeValidator, sample_recipe: Recipe) -> None:
        outcome = validator.validate(sample_recipe)
        assert outcome.valid is True
        assert outcome.error_message is None
        assert outcome.recipe is sample_recipe

    def test_missing_metadata(self, validator: RecipeValidator) -> None:
        outcome = validator.validate(make_recipe(metadata=None))
        assert "metadata: is required" in outcome.errors

    def test_blank_title(self, validator: RecipeValidator) -> None:
        outcome = validator.validate(make_recipe("  "))
        assert outcome.valid is False
        assert "metadata.title: must not be blank" in outcome.errors

    def test_requires_ingredients_and_instructions(self, validator: RecipeValidator) -> None:
        outcome = validator.validate(make_recipe(ingredients=[], instructions=[]))
        assert outcome.errors == (
            "ingredients: at least one ingredient is required",
            "instructions: at least one instruction is required",
        )

    def test_error_message_format(self, validator: RecipeValidator) -> None:
        """Issues are joined behind a common prefix."""
        recipe = make_recipe(ingredients=[Ingredient(item="")], instructions=[Instruction(step=0)])
        outcome = validator.validate(recipe)

        assert outcome.error_message == (
            "Validation failed: ingredients[0].item: must not be blank, "
            "instructions[0].step: must be at least 1, "
            "instructions[0].description: must not be blank"
        )

    @pytest.mark.parametrize("value", ["10m", "1h 30m", "2d", "1d 2h 5m", "3h"])
    def test_valid_times(self, validator: RecipeValidator, value: str) -> None:
        recipe = make_recipe(instructions=[Instruction(step=1, description="Wait", time=value)])
        assert validator.validate(recipe).valid

    @pytest.mark.parametrize("value", ["5 mins", "1.5h", "", "m10"])
    def test_invalid_times(self, validator: RecipeValidator, value: str) -> None:
        recipe = make_recipe(instructions=[Instruction(step=1, description="Wait", time=value)])
        outcome = validator.validate(recipe)
        assert outcome.valid is False
        assert outcome.errors[0].startswith("instructions[0].time: invalid duration")

    def test_metadata_times_checked(self, validator: RecipeValidator) -> None:
        recipe = make_recipe(metadata=RecipeMetadata(title="Pie", prep_time="about an hour"))
        assert "metadata.prep_time" in validator.validate(recipe).errors[0]

    def test_negative_nutrition(self, validator: RecipeValidator) -> None:
        recipe = make_recipe(nutrition=Nutrition(calories=-10, protein=5))
        assert validator.validate(recipe).errors == ("nutrition.calories: must not be negative",)

    def test_media_rules(self, validator: RecipeValidator) -> None:
        media = [ImageMedia(path=""), VideoMedia(path="v.mp4", duration="90 seconds")]
        recipe = make_recipe(instructions=[Instruction(step=1, description="Fold", media=media)])
        errors = validator.validate(recipe).errors

        assert "instructions[0].media[0].path: must not be blank" in errors
        assert any(e.startswith("instructions[0].media[1].duration") for e in errors)

    def test_cover_and_substitutions(self, validator: RecipeValidator) -> None:
        recipe = make_recipe(
            metadata=RecipeMetadata(title="Pie", cover_image=CoverImage(path=" ")),
            ingredients=[Ingredient(item="butter", substitutions=[Substitution(item="")])],
        )
        errors = validator.validate(recipe).errors

        assert "metadata.cover_image.path: must not be blank" in errors
        assert "ingredients[0].substitutions[0].item: must not be blank" in errors

    def test_difficulty_levels(self, validator: RecipeValidator) -> None:
        assert validator.validate(make_recipe(metadata=RecipeMetadata(title="P", difficulty="Easy"))).valid
        outcome = validator.validate(make_recipe(metadata=RecipeMetadata(title="P", difficulty="extreme")))
        assert outcome.valid is False

    def test_ensure_valid(self, validator: RecipeValidator, sample_recipe: Recipe) -> None:
        assert validator.ensure_valid(sample_recipe) is sample_recipe

        with pytest.raises(RecipeValidationError, match="Validation failed"):
            validator.ensure_valid(make_recipe(ingredients=[]))


class TestRecipePostProcessor:
    """Tests for RecipePostProcessor."""

    @pytest.fixture
    def processor(self, fixed_today: Callable[[], date]) -> RecipePostProcessor:
        return RecipePostProcessor(schema_version="1.0.0", today=fixed_today)

    def test_stamps_versions_source_and_date(
        self, processor: RecipePostProcessor, sample_recipe: Recipe
    ) -> None:
        processed = processor.process(sample_recipe, "https://example.com/pie")

        assert processed.schema_version == "1.0.0"
        assert processed.recipe_version == "1.0.0"
        assert processed.metadata.source == "https://example.com/pie"
        assert processed.metadata.date_created == date(2024, 5, 17)
        assert processed.metadata.title == "Apple Pie"

    def test_does_not_mutate_input(
        self, processor: RecipePostProcessor, sample_recipe: Recipe
    ) -> None:
        processor.process(sample_recipe, "https://example.com/pie")
        assert sample_recipe.metadata.source == "https://model.invalid/made-up"
        assert sample_recipe.schema_version is None

    def test_missing_metadata_gets_placeholder_title(self, processor: RecipePostProcessor) -> None:
        processed = processor.process(make_recipe(metadata=None), "https://example.com/x")
        assert processed.metadata.title == "Untitled Recipe"
        assert processed.metadata.source == "https://example.com/x"

    def test_custom_schema_version(self, fixed_today: Callable[[], date]) -> None:
        processor = RecipePostProcessor(schema_version="2.1.0", today=fixed_today)
        assert processor.process(make_recipe(), "https://e.com").schema_version == "2.1.0"
