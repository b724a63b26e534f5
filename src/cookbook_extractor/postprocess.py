"""Final stamping of accepted recipes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from .models import Recipe, RecipeMetadata

logger = logging.getLogger(__name__)

RECIPE_VERSION = "1.0.0"
UNTITLED = "Untitled Recipe"


class RecipePostProcessor:
    """Stamps versions, source URL and creation date onto a recipe.

    Whatever the model put into ``metadata.source`` and
    ``metadata.date_created`` is overwritten.

    Args:
        schema_version: Schema version to record on each recipe
        today: Clock used for ``date_created``
    """

    def __init__(self, schema_version: str = "1.0.0", today: Callable[[], date] = date.today):
        self.schema_version = schema_version
        self.today = today

    def process(self, recipe: Recipe, source_url: str) -> Recipe:
        metadata = recipe.metadata or RecipeMetadata(title=UNTITLED)
        if recipe.metadata is None:
            logger.warning(f"Recipe from {source_url} has no metadata, using '{UNTITLED}'")

        metadata = metadata.model_copy(update={"source": source_url, "date_created": self.today()})
        return recipe.model_copy(
            update={
                "is_recipe": True,
                "schema_version": self.schema_version,
                "recipe_version": RECIPE_VERSION,
                "metadata": metadata,
            }
        )
