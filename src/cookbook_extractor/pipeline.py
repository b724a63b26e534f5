"""Top-level recipe extraction pipeline.

``RecipePipeline.run`` ties the pieces together::

    hash URL -> cache lookup -> (miss) clean + extract + validate -> store

A cache hit short-circuits everything else. Concurrent calls for the same
content hash are serialized so the expensive part runs at most once; the
followers then find the entry in the cache.

Only URL problems (``MalformedUrlError``, ``InvalidArgumentError``) reach the
caller. Cache failures are logged and treated as misses or skipped stores.

Example:
    >>> pipeline = ServiceFactory(ExtractionConfig.load()).create_pipeline()
    >>> result = pipeline.run("https://example.com/pie", html)
    >>> [r.title for r in result.recipes]
    ['Apple Pie']
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import CacheUnavailableError, SerializationError
from .models import ExtractionEnvelope, Recipe

if TYPE_CHECKING:
    from .adaptive import AdaptiveCleaningOrchestrator
    from .hashing import ContentHasher
    from .metrics import PipelineMetrics
    from .protocols import RecipeCache

logger = logging.getLogger(__name__)

# Stored entries do not keep the model's confidence
CACHED_RECIPE_CONFIDENCE = 1.0


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline run.

    Attributes:
        content_hash: Cache key of the source URL
        source_url: URL as requested
        envelope: Final extraction envelope
        from_cache: Whether the result was served from the cache
    """

    content_hash: str
    source_url: str
    envelope: ExtractionEnvelope
    from_cache: bool = False

    @property
    def is_recipe(self) -> bool:
        return self.envelope.is_recipe

    @property
    def confidence(self) -> float:
        return self.envelope.confidence

    @property
    def recipes(self) -> tuple[Recipe, ...]:
        return self.envelope.recipes


@dataclass
class _InFlight:
    lock: threading.Lock = field(default_factory=threading.Lock)
    waiters: int = 0


class RecipePipeline:
    """Cache-fronted extraction pipeline with per-URL single-flight.

    Args:
        hasher: Maps URLs to cache keys
        cache: Recipe store
        orchestrator: Cleaning, extraction and validation with escalation
        metrics: Optional recorder for cache hits and final confidence
    """

    def __init__(
        self,
        hasher: ContentHasher,
        cache: RecipeCache,
        orchestrator: AdaptiveCleaningOrchestrator,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self.hasher = hasher
        self.cache = cache
        self.orchestrator = orchestrator
        self.metrics = metrics
        self._guard = threading.Lock()
        self._inflight: dict[str, _InFlight] = {}

    def run(self, url: str, html: str | None) -> PipelineResult:
        """Return the recipes for a page, from the cache when possible.

        Args:
            url: Source URL (cache key after normalization)
            html: Raw page markup

        Raises:
            InvalidArgumentError: If the URL is blank
            MalformedUrlError: If the URL cannot be parsed
        """
        content_hash = self.hasher.hash(url)

        with self._guard:
            slot = self._inflight.setdefault(content_hash, _InFlight())
            slot.waiters += 1
        try:
            with slot.lock:
                return self._run_exclusive(content_hash, url, html or "")
        finally:
            with self._guard:
                slot.waiters -= 1
                if slot.waiters == 0:
                    del self._inflight[content_hash]

    def _run_exclusive(self, content_hash: str, url: str, html: str) -> PipelineResult:
        cached = self._from_cache(content_hash, url)
        if cached is not None:
            self._record(hit=True, confidence=cached.confidence)
            return PipelineResult(content_hash, url, cached, from_cache=True)

        self._record(hit=False)
        logger.info(f"Cache miss for {url}, running extraction")
        envelope = self.orchestrator.run(html, url)

        if envelope.failed:
            # A failed call says nothing about the page; the next request retries
            logger.warning(f"Extraction failed for {url}, result not cached")
        else:
            try:
                self.cache.store(
                    content_hash, url, envelope.recipes if envelope.is_recipe else None
                )
            except CacheUnavailableError as e:
                logger.error(f"Failed to store result for {url}: {e}")

        if self.metrics is not None:
            self.metrics.record_result(envelope.confidence)
        return PipelineResult(content_hash, url, envelope)

    def _from_cache(self, content_hash: str, url: str) -> ExtractionEnvelope | None:
        try:
            entry = self.cache.lookup(content_hash)
        except CacheUnavailableError as e:
            logger.warning(f"Cache lookup failed for {url}, treating as miss: {e}")
            return None
        if entry is None:
            return None

        if not entry.valid:
            logger.info(f"Cache hit for {url}: confirmed non-recipe")
            return ExtractionEnvelope.not_recipe(0.0, reason="Cached non-recipe")

        try:
            recipes = entry.recipes()
        except SerializationError as e:
            logger.warning(f"Corrupted cache entry for {url}, treating as miss: {e}")
            return None
        if not recipes:
            logger.warning(f"Cache entry for {url} is valid but holds no recipes, treating as miss")
            return None

        logger.info(f"Cache hit for {url}: {len(recipes)} recipe(s), v{entry.version}")
        return ExtractionEnvelope(
            is_recipe=True, confidence=CACHED_RECIPE_CONFIDENCE, recipes=tuple(recipes)
        )

    def _record(self, hit: bool, confidence: float | None = None) -> None:
        if self.metrics is None:
            return
        self.metrics.record_cache(hit)
        if confidence is not None:
            self.metrics.record_result(confidence)
