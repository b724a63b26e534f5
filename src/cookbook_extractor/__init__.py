"""
Cookbook Extractor - Turn recipe web pages into structured recipe records.

This package reduces page HTML with a cascade of cleaning strategies, extracts
recipes with an OpenAI model, validates them with feedback retries and caches
the result per normalized URL.
"""

__version__ = "0.1.0"

from .config import ExtractionConfig
from .models import ExtractionEnvelope, Recipe
from .pipeline import PipelineResult, RecipePipeline
from .services import ServiceFactory

__all__ = [
    "ExtractionConfig",
    "ExtractionEnvelope",
    "PipelineResult",
    "Recipe",
    "RecipePipeline",
    "ServiceFactory",
]
