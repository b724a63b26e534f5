"""Structural validation of extracted recipes.

The validator checks the rules the Pydantic models deliberately leave loose,
so that a broken recipe can be fed back to the model with a precise error
message. Messages use ``path: problem`` items, for example::

    Validation failed: metadata.title: must not be blank, instructions[2].time: invalid duration '5 mins'

Example:
    >>> validator = RecipeValidator()
    >>> outcome = validator.validate(recipe)
    >>> if not outcome.valid:
    ...     print(outcome.error_message)
"""

from __future__ import annotations

import re

from .exceptions import RecipeValidationError
from .models import (
    DURATION_PATTERN,
    TIME_PATTERN,
    Recipe,
    ValidationOutcome,
    VideoMedia,
)

_TIME_RE = re.compile(TIME_PATTERN)
_DURATION_RE = re.compile(DURATION_PATTERN)

NUTRITION_FIELDS = ("calories", "protein", "carbohydrates", "fat", "fiber", "sugar", "sodium")
DIFFICULTY_LEVELS = ("easy", "medium", "hard")


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _check_time(issues: list[str], path: str, value: str | None) -> None:
    # An empty match is allowed by the pattern but carries no information
    if value is None:
        return
    if not value.strip() or not _TIME_RE.match(value.strip()):
        issues.append(f"{path}: invalid duration {value!r}")


class RecipeValidator:
    """Checks recipes against the structural rules of the recipe schema."""

    def collect_issues(self, recipe: Recipe) -> list[str]:
        """Return every rule violation as a ``path: problem`` string."""
        issues: list[str] = []

        metadata = recipe.metadata
        if metadata is None:
            issues.append("metadata: is required")
        else:
            if _blank(metadata.title):
                issues.append("metadata.title: must not be blank")
            if metadata.servings is not None and metadata.servings < 1:
                issues.append("metadata.servings: must be at least 1")
            for name in ("prep_time", "cook_time", "total_time"):
                _check_time(issues, f"metadata.{name}", getattr(metadata, name))
            if metadata.difficulty.lower() not in DIFFICULTY_LEVELS:
                issues.append(
                    f"metadata.difficulty: must be one of {', '.join(DIFFICULTY_LEVELS)}"
                )
            if metadata.cover_image is not None and _blank(metadata.cover_image.path):
                issues.append("metadata.cover_image.path: must not be blank")

        if not recipe.ingredients:
            issues.append("ingredients: at least one ingredient is required")
        for i, ingredient in enumerate(recipe.ingredients):
            if _blank(ingredient.item):
                issues.append(f"ingredients[{i}].item: must not be blank")
            if ingredient.amount is not None and ingredient.amount < 0:
                issues.append(f"ingredients[{i}].amount: must not be negative")
            for j, substitution in enumerate(ingredient.substitutions):
                if _blank(substitution.item):
                    issues.append(f"ingredients[{i}].substitutions[{j}].item: must not be blank")

        if not recipe.instructions:
            issues.append("instructions: at least one instruction is required")
        for i, instruction in enumerate(recipe.instructions):
            if instruction.step < 1:
                issues.append(f"instructions[{i}].step: must be at least 1")
            if _blank(instruction.description):
                issues.append(f"instructions[{i}].description: must not be blank")
            _check_time(issues, f"instructions[{i}].time", instruction.time)
            for j, media in enumerate(instruction.media):
                if _blank(media.path):
                    issues.append(f"instructions[{i}].media[{j}].path: must not be blank")
                if (
                    isinstance(media, VideoMedia)
                    and media.duration is not None
                    and not _DURATION_RE.match(media.duration)
                ):
                    issues.append(
                        f"instructions[{i}].media[{j}].duration: expected MM:SS, "
                        f"got {media.duration!r}"
                    )

        if recipe.nutrition is not None:
            for name in NUTRITION_FIELDS:
                value = getattr(recipe.nutrition, name)
                if value is not None and value < 0:
                    issues.append(f"nutrition.{name}: must not be negative")

        return issues

    def validate(self, recipe: Recipe) -> ValidationOutcome:
        """Validate one recipe.

        Returns:
            Outcome with a combined error message when invalid
        """
        issues = self.collect_issues(recipe)
        if not issues:
            return ValidationOutcome(recipe=recipe, valid=True)
        return ValidationOutcome(
            recipe=recipe,
            valid=False,
            error_message="Validation failed: " + ", ".join(issues),
            errors=tuple(issues),
        )

    def ensure_valid(self, recipe: Recipe) -> Recipe:
        """Return the recipe unchanged or raise.

        Raises:
            RecipeValidationError: If the recipe breaks any rule
        """
        outcome = self.validate(recipe)
        if not outcome.valid:
            raise RecipeValidationError(
                outcome.error_message or "Validation failed",
                title=recipe.title,
                issue_count=len(outcome.errors),
            )
        return recipe
