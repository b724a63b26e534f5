"""In-process counters for the extraction pipeline.

``PipelineMetrics`` is a small thread-safe recorder that the cascade, the
validation loop and the orchestrator report into. An external collector can
poll ``snapshot()`` and forward the values wherever it likes.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PipelineMetrics:
    """Counters and last-seen values for pipeline runs.

    Attributes:
        strategies_used: How often each strategy produced the cascade result
        strategy_attempts: Extraction attempts per cleaning strategy
        validation_retries: Feedback retries issued by the validation loop
        cache_hits: Lookups answered from the cache
        cache_misses: Lookups that ran the pipeline
        last_reduction_ratio: Reduction ratio of the most recent cleaning
        last_confidence: Confidence of the most recent final result
    """

    strategies_used: Counter[str] = field(default_factory=Counter)
    strategy_attempts: Counter[str] = field(default_factory=Counter)
    validation_retries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    last_reduction_ratio: float | None = None
    last_confidence: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_cleaning(self, strategy: str, reduction_ratio: float) -> None:
        with self._lock:
            self.strategies_used[strategy] += 1
            self.last_reduction_ratio = reduction_ratio

    def record_attempt(self, strategy: str) -> None:
        with self._lock:
            self.strategy_attempts[strategy] += 1

    def record_validation_retry(self) -> None:
        with self._lock:
            self.validation_retries += 1

    def record_cache(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self.cache_hits += 1
            else:
                self.cache_misses += 1

    def record_result(self, confidence: float) -> None:
        with self._lock:
            self.last_confidence = confidence

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of all values as plain Python types."""
        with self._lock:
            return {
                "strategies_used": dict(self.strategies_used),
                "strategy_attempts": dict(self.strategy_attempts),
                "validation_retries": self.validation_retries,
                "cache_hits": self.cache_hits,
                "cache_misses": self.cache_misses,
                "last_reduction_ratio": self.last_reduction_ratio,
                "last_confidence": self.last_confidence,
            }
