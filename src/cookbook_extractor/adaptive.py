"""Confidence-driven escalation across cleaning strategies.

Aggressive cleaning sometimes removes the very part of the page that holds
the recipe. When the model says "not a recipe" but still reports a
confidence at or above the threshold, the page is cleaned again with the
next, less aggressive strategy and extraction is repeated::

    structured_data -> section_based -> content_filter -> fallback

Escalation always starts from the raw HTML, never from a previous cleaned
payload. A confidence below the threshold (including the 0.0 of a failed
call) ends the loop immediately.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .cleaning import ADAPTIVE_ORDER

if TYPE_CHECKING:
    from .metrics import PipelineMetrics
    from .models import ExtractionEnvelope
    from .protocols import HtmlReducer, ValidatedExtractor

logger = logging.getLogger(__name__)


class AdaptiveCleaningOrchestrator:
    """Runs cleaning and validated extraction, escalating on low yield.

    Args:
        reducer: HTML cleaning cascade
        extractor: Extraction with validation retries
        enabled: Whether to escalate at all
        confidence_threshold: Minimum confidence that justifies another attempt
        metrics: Optional recorder for per-strategy attempts
    """

    def __init__(
        self,
        reducer: HtmlReducer,
        extractor: ValidatedExtractor,
        enabled: bool = True,
        confidence_threshold: float = 0.5,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self.reducer = reducer
        self.extractor = extractor
        self.enabled = enabled
        self.confidence_threshold = confidence_threshold
        self.metrics = metrics

    def _extract(self, cleaned_html: str, strategy: str, url: str) -> ExtractionEnvelope:
        if self.metrics is not None:
            self.metrics.record_attempt(strategy)
        return self.extractor.run(cleaned_html, url)

    def run(self, raw_html: str, url: str) -> ExtractionEnvelope:
        """Clean, extract and escalate until a recipe is found or a stop applies."""
        preprocessed = self.reducer.reduce(raw_html, url)
        result = self._extract(preprocessed.cleaned_html, preprocessed.strategy_used.value, url)

        if result.is_recipe or not self.enabled:
            return result

        # Cleaning switched off: the raw page was already sent
        if preprocessed.strategy_used not in ADAPTIVE_ORDER:
            return result

        sent = {preprocessed.cleaned_html}
        start = ADAPTIVE_ORDER.index(preprocessed.strategy_used) + 1
        for strategy in ADAPTIVE_ORDER[start:]:
            if result.confidence < self.confidence_threshold:
                logger.info(
                    f"Not a recipe: {url} (confidence {result.confidence:.2f} "
                    f"< {self.confidence_threshold:.2f})"
                )
                return result

            candidate = self.reducer.apply_one(raw_html, strategy, url)
            if candidate.cleaned_html in sent:
                logger.debug(f"Skipping {strategy.value} for {url}: same payload already tried")
                continue
            sent.add(candidate.cleaned_html)

            logger.info(
                f"Escalating {url} to {candidate.strategy_used.value} "
                f"(confidence {result.confidence:.2f})"
            )
            result = self._extract(candidate.cleaned_html, candidate.strategy_used.value, url)
            if result.is_recipe:
                return result

        logger.info(f"All cleaning strategies exhausted for {url}")
        return result
