"""Writing extracted recipes to disk as YAML files.

Example:
    >>> paths = write_recipes(result.recipes, Path("output"))
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from .models import Recipe
from .serialization import recipe_to_yaml

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """Convert text to a filename-safe slug.

    Example:
        >>> slugify("Roasted Chicken & Vegetables!")
        'roasted-chicken-vegetables'
    """
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug)
    slug = slug.strip("-")
    return slug or "recipe"


def write_recipes(recipes: Sequence[Recipe], output_dir: Path) -> list[Path]:
    """Write each recipe to ``<slug>.yaml`` in ``output_dir``.

    Recipes with the same title get numbered suffixes instead of
    overwriting each other.

    Returns:
        Paths of the written files, in input order
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for recipe in recipes:
        stem = slugify(recipe.title)
        path = output_dir / f"{stem}.yaml"
        counter = 2
        while path.exists() or path in written:
            path = output_dir / f"{stem}-{counter}.yaml"
            counter += 1

        with path.open("w", encoding="utf-8") as f:
            f.write(recipe_to_yaml(recipe))
        logger.info(f"Saved recipe: {path}")
        written.append(path)

    return written
