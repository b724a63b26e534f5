"""Extraction with structural validation and feedback retries.

Each extracted recipe is validated on its own:

- all or some recipes valid: the valid ones are post-processed and returned
- none valid: the model is asked again with the first invalid recipe and the
  combined error messages, until the retry budget runs out

The extractor is called at most ``1 + max_retries`` times. With
``max_retries == 0`` validation is skipped and the raw extraction is trusted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .models import ExtractionEnvelope, Recipe

if TYPE_CHECKING:
    from .metrics import PipelineMetrics
    from .postprocess import RecipePostProcessor
    from .protocols import RecipeExtractor
    from .validator import RecipeValidator

logger = logging.getLogger(__name__)


class ValidatingExtractor:
    """Wraps a ``RecipeExtractor`` with the validation retry loop.

    Args:
        extractor: LLM extraction client
        validator: Structural recipe validator
        post_processor: Stamps accepted recipes
        max_retries: Feedback retries after an all-invalid response
        metrics: Optional recorder for retry counts
    """

    def __init__(
        self,
        extractor: RecipeExtractor,
        validator: RecipeValidator,
        post_processor: RecipePostProcessor,
        max_retries: int = 1,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self.extractor = extractor
        self.validator = validator
        self.post_processor = post_processor
        self.max_retries = max_retries
        self.metrics = metrics

    def run(self, cleaned_html: str, source_url: str) -> ExtractionEnvelope:
        """Extract, validate and post-process recipes from a cleaned payload.

        Returns:
            Envelope holding only valid, post-processed recipes, or a
            not-a-recipe envelope carrying the last observed confidence
        """
        envelope = self.extractor.extract(cleaned_html, source_url)
        if not envelope.is_recipe:
            return envelope

        if self.max_retries == 0:
            return self._accept(envelope, envelope.recipes, source_url)

        retries = 0
        while True:
            outcomes = [self.validator.validate(recipe) for recipe in envelope.recipes]
            valid = [outcome.recipe for outcome in outcomes if outcome.valid]
            invalid = [outcome for outcome in outcomes if not outcome.valid]

            if valid:
                if invalid:
                    logger.warning(
                        f"Dropping {len(invalid)} of {len(outcomes)} recipes from {source_url} "
                        f"that failed validation"
                    )
                return self._accept(envelope, valid, source_url)

            if retries >= self.max_retries:
                logger.error(
                    f"Validation failed for {source_url} after {retries} retries: "
                    f"{invalid[0].error_message}"
                )
                return ExtractionEnvelope.not_recipe(
                    envelope.confidence, reason="Recipes failed validation"
                )

            retries += 1
            if self.metrics is not None:
                self.metrics.record_validation_retry()

            feedback = "; ".join(outcome.error_message or "" for outcome in invalid)
            logger.info(f"Retrying extraction for {source_url} ({retries}/{self.max_retries})")
            envelope = self.extractor.extract_with_feedback(
                cleaned_html, invalid[0].recipe, feedback, source_url
            )
            if not envelope.is_recipe:
                logger.info(f"Model reported no recipe on retry for {source_url}")
                return envelope

    def _accept(
        self, envelope: ExtractionEnvelope, recipes: Sequence[Recipe], source_url: str
    ) -> ExtractionEnvelope:
        return ExtractionEnvelope(
            is_recipe=True,
            confidence=envelope.confidence,
            recipes=tuple(self.post_processor.process(r, source_url) for r in recipes),
            internal_reasoning=envelope.internal_reasoning,
        )
