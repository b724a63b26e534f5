"""Service factory for centralized dependency injection.

This module provides the ServiceFactory class which acts as a dependency
injection container, creating pipeline components from one configuration
and sharing expensive resources between them.

Example:
    >>> from cookbook_extractor.config import ExtractionConfig
    >>> factory = ServiceFactory(ExtractionConfig.load())
    >>> pipeline = factory.create_pipeline()
    >>> result = pipeline.run(url, html)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING

from openai import OpenAI

from ..metrics import PipelineMetrics

if TYPE_CHECKING:
    from ..adaptive import AdaptiveCleaningOrchestrator
    from ..cleaning import CleaningCascade
    from ..config import ExtractionConfig
    from ..extraction import ExtractionClient
    from ..hashing import ContentHasher
    from ..pipeline import RecipePipeline
    from ..postprocess import RecipePostProcessor
    from ..protocols import RecipeCache
    from ..validating import ValidatingExtractor
    from ..validator import RecipeValidator


@dataclass
class ServiceFactory:
    """Factory for creating pipeline components with shared dependencies.

    Attributes:
        config: Configuration for all components
        metrics: Recorder shared by every component the factory creates

    Note:
        The OpenAI client is lazily created and cached, so components created
        by one factory share one connection pool. Tests can assign
        ``factory.client`` before creating components.
    """

    config: ExtractionConfig
    metrics: PipelineMetrics = field(default_factory=PipelineMetrics)

    @cached_property
    def client(self) -> OpenAI:
        """Get the shared OpenAI client."""
        return OpenAI(timeout=self.config.request_timeout, max_retries=0)

    def create_cleaner(self) -> CleaningCascade:
        from ..cleaning import CleaningCascade

        return CleaningCascade(self.config, metrics=self.metrics)

    def create_hasher(self) -> ContentHasher:
        from ..hashing import ContentHasher

        return ContentHasher(self.config.tracking_parameters)

    def create_extraction_client(self) -> ExtractionClient:
        """Create the LLM extraction client.

        Transport retries are handled by ``with_retry`` inside the client,
        so the OpenAI SDK's own retries are switched off.
        """
        from ..extraction import ExtractionClient

        return ExtractionClient(
            client=self.client,
            model=self.config.model,
            retry_attempts=self.config.api_retry_attempts,
            initial_retry_delay=self.config.initial_retry_delay,
        )

    def create_validator(self) -> RecipeValidator:
        from ..validator import RecipeValidator

        return RecipeValidator()

    def create_post_processor(self) -> RecipePostProcessor:
        from ..postprocess import RecipePostProcessor

        return RecipePostProcessor(schema_version=self.config.schema_version)

    def create_validating_extractor(self) -> ValidatingExtractor:
        from ..validating import ValidatingExtractor

        return ValidatingExtractor(
            extractor=self.create_extraction_client(),
            validator=self.create_validator(),
            post_processor=self.create_post_processor(),
            max_retries=self.config.validation_max_retries,
            metrics=self.metrics,
        )

    def create_orchestrator(self) -> AdaptiveCleaningOrchestrator:
        from ..adaptive import AdaptiveCleaningOrchestrator

        return AdaptiveCleaningOrchestrator(
            reducer=self.create_cleaner(),
            extractor=self.create_validating_extractor(),
            enabled=self.config.adaptive_cleaning_enabled,
            confidence_threshold=self.config.confidence_threshold,
            metrics=self.metrics,
        )

    def create_cache(self) -> RecipeCache:
        """Create the recipe cache.

        Returns:
            FileRecipeCache when ``cache_dir`` is configured, otherwise an
            in-memory cache
        """
        from ..cache import FileRecipeCache, InMemoryRecipeCache

        if self.config.cache_dir is not None:
            return FileRecipeCache(self.config.cache_dir)
        return InMemoryRecipeCache()

    def create_pipeline(self, cache: RecipeCache | None = None) -> RecipePipeline:
        from ..pipeline import RecipePipeline

        return RecipePipeline(
            hasher=self.create_hasher(),
            cache=cache if cache is not None else self.create_cache(),
            orchestrator=self.create_orchestrator(),
            metrics=self.metrics,
        )
