"""Protocol definitions for cookbook_extractor.

The pipeline components only talk to each other through these narrow
interfaces, so each one can be replaced by a test double or an alternative
implementation (another LLM provider, another cache backend).

Example:
    >>> class CannedExtractor:
    ...     def extract(self, cleaned_html: str, source_url: str) -> ExtractionEnvelope:
    ...         return ExtractionEnvelope.not_recipe(0.1)
    ...     def extract_with_feedback(self, cleaned_html, previous_recipe, validation_error,
    ...                               source_url=""):
    ...         return ExtractionEnvelope.not_recipe(0.1)
    ...
    >>> isinstance(CannedExtractor(), RecipeExtractor)
    True
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .cache import CacheEntry
    from .cleaning import CleaningStrategy, PreprocessingResult
    from .models import ExtractionEnvelope, Recipe


@runtime_checkable
class RecipeExtractor(Protocol):
    """Protocol for LLM-backed recipe extraction.

    Implementations must not raise for transport or parsing problems; they
    return ``ExtractionEnvelope.failure()`` instead.
    """

    def extract(self, cleaned_html: str, source_url: str) -> ExtractionEnvelope:
        """Extract all recipes from a cleaned payload."""
        ...

    def extract_with_feedback(
        self,
        cleaned_html: str,
        previous_recipe: Recipe,
        validation_error: str,
        source_url: str = "",
    ) -> ExtractionEnvelope:
        """Re-extract, giving the model its previous recipe and the validation error."""
        ...


@runtime_checkable
class HtmlReducer(Protocol):
    """Protocol for HTML reduction before extraction."""

    def reduce(self, html: str | None, url: str = "") -> PreprocessingResult:
        """Run the full strategy cascade."""
        ...

    def apply_one(
        self, html: str | None, strategy: CleaningStrategy, url: str = ""
    ) -> PreprocessingResult:
        """Run a single strategy, falling back to the raw input."""
        ...


@runtime_checkable
class ValidatedExtractor(Protocol):
    """Protocol for extraction with validation and feedback retries."""

    def run(self, cleaned_html: str, source_url: str) -> ExtractionEnvelope:
        """Extract and return only post-processed, valid recipes."""
        ...


@runtime_checkable
class RecipeCache(Protocol):
    """Protocol for the content-hash keyed recipe store.

    Implementations raise ``CacheUnavailableError`` when the backend cannot
    be reached; the pipeline treats that as a miss.
    """

    def lookup(self, content_hash: str) -> CacheEntry | None:
        """Return the entry for a hash, or None."""
        ...

    def store(
        self, content_hash: str, source_url: str, recipes: Sequence[Recipe] | None
    ) -> CacheEntry:
        """Store recipes, or a confirmed non-recipe marker when None or empty."""
        ...
