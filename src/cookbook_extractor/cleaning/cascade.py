"""Multi-strategy HTML reduction.

The cascade tries each enabled strategy from most to least aggressive and
returns the first usable payload. It never raises: a strategy that blows up
is treated the same as one that found nothing, and the raw input is always
available as the last resort.

Example:
    >>> cascade = CleaningCascade(ExtractionConfig())
    >>> result = cascade.reduce(html)
    >>> print(result.metrics_message)
    Strategy: structured_data, 48211 → 1873 chars (96.1% reduction)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .strategies import extract_structured_data, filter_content, select_recipe_section

if TYPE_CHECKING:
    from ..config import ExtractionConfig
    from ..metrics import PipelineMetrics

logger = logging.getLogger(__name__)


class CleaningStrategy(str, Enum):
    """Which reduction produced a cleaned payload."""

    STRUCTURED_DATA = "structured_data"
    SECTION_BASED = "section_based"
    CONTENT_FILTER = "content_filter"
    FALLBACK = "fallback"
    DISABLED = "disabled"


# Escalation order, most aggressive first
ADAPTIVE_ORDER: tuple[CleaningStrategy, ...] = (
    CleaningStrategy.STRUCTURED_DATA,
    CleaningStrategy.SECTION_BASED,
    CleaningStrategy.CONTENT_FILTER,
    CleaningStrategy.FALLBACK,
)


@dataclass(frozen=True)
class PreprocessingResult:
    """Output of one cleaning pass.

    Attributes:
        cleaned_html: Payload to send to the extractor (never None)
        original_size: Length of the input in characters
        cleaned_size: Length of the payload in characters
        reduction_ratio: Fraction of the input removed, in [0, 1]
        strategy_used: Strategy that produced the payload
    """

    cleaned_html: str
    original_size: int
    cleaned_size: int
    reduction_ratio: float
    strategy_used: CleaningStrategy

    @classmethod
    def build(cls, original: str, cleaned: str, strategy: CleaningStrategy) -> PreprocessingResult:
        original_size = len(original)
        cleaned_size = len(cleaned)
        ratio = 0.0
        if original_size > 0:
            ratio = min(max((original_size - cleaned_size) / original_size, 0.0), 1.0)
        return cls(
            cleaned_html=cleaned,
            original_size=original_size,
            cleaned_size=cleaned_size,
            reduction_ratio=ratio,
            strategy_used=strategy,
        )

    @property
    def metrics_message(self) -> str:
        return (
            f"Strategy: {self.strategy_used.value}, {self.original_size} → "
            f"{self.cleaned_size} chars ({self.reduction_ratio * 100:.1f}% reduction)"
        )


class CleaningCascade:
    """Reduces raw page HTML before it is sent to the extractor.

    Attributes:
        config: Pipeline configuration (strategy switches and thresholds)
        metrics: Optional recorder for strategy usage
    """

    def __init__(self, config: ExtractionConfig, metrics: PipelineMetrics | None = None) -> None:
        self.config = config
        self.metrics = metrics

    def _strategies(self) -> list[tuple[CleaningStrategy, bool, Callable[[str], str | None]]]:
        config = self.config
        return [
            (
                CleaningStrategy.STRUCTURED_DATA,
                config.structured_data_enabled,
                lambda html: extract_structured_data(html, config.min_completeness),
            ),
            (
                CleaningStrategy.SECTION_BASED,
                config.section_based_enabled,
                lambda html: select_recipe_section(
                    html,
                    config.section_keywords,
                    config.min_section_confidence,
                    config.section_text_threshold,
                    config.min_output_size,
                ),
            ),
            (
                CleaningStrategy.CONTENT_FILTER,
                config.content_filter_enabled,
                lambda html: filter_content(html, config.min_output_size),
            ),
        ]

    def _attempt(
        self, strategy: CleaningStrategy, func: Callable[[str], str | None], html: str, url: str
    ) -> str | None:
        try:
            output = func(html)
        except Exception as e:
            logger.warning(f"Cleaning strategy {strategy.value} failed for {url or '<html>'}: {e}")
            return None
        if output is not None and not output.strip():
            return None
        return output

    def _finish(self, result: PreprocessingResult, url: str) -> PreprocessingResult:
        logger.info(f"{result.metrics_message} {url}".rstrip())
        if self.metrics is not None:
            self.metrics.record_cleaning(result.strategy_used.value, result.reduction_ratio)
        return result

    def reduce(self, html: str | None, url: str = "") -> PreprocessingResult:
        """Run the cascade and return the first usable payload.

        Args:
            html: Raw page markup (None is treated as empty)
            url: Source URL, used for logging only

        Returns:
            Cleaning result; falls back to the untouched input
        """
        if not html:
            return self._finish(PreprocessingResult.build("", "", CleaningStrategy.FALLBACK), url)

        if not self.config.cleanup_enabled:
            return self._finish(
                PreprocessingResult.build(html, html, CleaningStrategy.DISABLED), url
            )

        for strategy, enabled, func in self._strategies():
            if not enabled:
                continue
            output = self._attempt(strategy, func, html, url)
            if output is not None:
                return self._finish(PreprocessingResult.build(html, output, strategy), url)

        return self._finish(PreprocessingResult.build(html, html, CleaningStrategy.FALLBACK), url)

    def apply_one(
        self, html: str | None, strategy: CleaningStrategy, url: str = ""
    ) -> PreprocessingResult:
        """Run a single strategy, falling back to the raw input.

        Used by adaptive escalation. A disabled strategy, an unusable output,
        ``FALLBACK`` and ``DISABLED`` all yield the raw input tagged
        ``FALLBACK``.
        """
        html = html or ""
        for candidate, enabled, func in self._strategies():
            if candidate is not strategy:
                continue
            if enabled and html:
                output = self._attempt(candidate, func, html, url)
                if output is not None:
                    return self._finish(PreprocessingResult.build(html, output, candidate), url)
            break

        return self._finish(PreprocessingResult.build(html, html, CleaningStrategy.FALLBACK), url)
