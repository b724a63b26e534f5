"""HTML cleaning package for cookbook_extractor.

Modules:
    strategies: Pure reduction strategies over raw HTML
    cascade: CleaningCascade that chains the strategies
"""

from .cascade import ADAPTIVE_ORDER, CleaningCascade, CleaningStrategy, PreprocessingResult

__all__ = ["ADAPTIVE_ORDER", "CleaningCascade", "CleaningStrategy", "PreprocessingResult"]
