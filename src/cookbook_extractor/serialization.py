"""YAML encoding of recipes and cache payloads.

A cache payload is either a single YAML document (one recipe) or a JSON array
of YAML documents (several recipes from one page). Readers tell the two apart
by the leading ``[``, which a recipe document, being a mapping, never has.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import yaml
from pydantic import ValidationError

from .exceptions import SerializationError
from .models import Recipe


def recipe_to_yaml(recipe: Recipe) -> str:
    """Serialize a recipe as a YAML document (None fields omitted)."""
    data = recipe.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def recipe_from_yaml(document: str) -> Recipe:
    """Parse a YAML document into a Recipe.

    Raises:
        SerializationError: If the document is not a valid recipe mapping
    """
    try:
        data = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise SerializationError("Invalid recipe YAML", error=str(e)) from e

    if not isinstance(data, dict):
        raise SerializationError("Recipe YAML must be a mapping", type=type(data).__name__)

    try:
        return Recipe.model_validate(data)
    except ValidationError as e:
        raise SerializationError("YAML does not match the recipe model", error=str(e)) from e


def encode_payload(recipes: Sequence[Recipe]) -> str:
    """Encode recipes for storage.

    Returns:
        "" for no recipes, one YAML document for a single recipe, otherwise a
        JSON array of YAML documents
    """
    if not recipes:
        return ""
    if len(recipes) == 1:
        return recipe_to_yaml(recipes[0])
    return json.dumps([recipe_to_yaml(r) for r in recipes], ensure_ascii=False)


def decode_payload(payload: str | None) -> list[Recipe]:
    """Decode a stored payload in either format.

    Raises:
        SerializationError: If the payload cannot be decoded
    """
    if payload is None or not payload.strip():
        return []

    if payload.lstrip().startswith("["):
        try:
            documents = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SerializationError("Invalid multi-recipe payload", error=str(e)) from e
        if not isinstance(documents, list) or not all(isinstance(d, str) for d in documents):
            raise SerializationError("Multi-recipe payload must be a list of YAML strings")
        return [recipe_from_yaml(d) for d in documents]

    return [recipe_from_yaml(payload)]
