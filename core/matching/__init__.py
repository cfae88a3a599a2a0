"""
Matching Module for the development identity server.

Components:
    - interfaces: MatchResult and the EmbeddingMatcher base class
    - embedding_matcher: Euclidean nearest-identity matcher

Usage:
    from core.matching import EuclideanEmbeddingMatcher
"""

from core.matching.interfaces import MatchResult, EmbeddingMatcher
from core.matching.embedding_matcher import EuclideanEmbeddingMatcher

__all__ = [
    "MatchResult",
    "EmbeddingMatcher",
    "EuclideanEmbeddingMatcher",
]
