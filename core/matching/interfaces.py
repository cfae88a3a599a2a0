"""
Matching Interfaces Module

Abstract interface for comparing a probe descriptor against stored identity
templates, used by the development identity server.

Usage:
    from core.matching.interfaces import MatchResult, EmbeddingMatcher
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict

import numpy as np


@dataclass
class MatchResult:
    """
    Result of a matching operation.

    Attributes:
        score: Similarity score between 0.0 and 1.0 (1.0 = identical).
        details: Algorithm-specific details, e.g. {"distance": 0.41}.
        is_match: Threshold decision: True = same person.
    """

    score: float
    details: Dict[str, Any]
    is_match: bool


class EmbeddingMatcher(ABC):
    """
    Abstract base class for identity-embedding matching.

    Compares two fixed-length face descriptors and decides whether they
    belong to the same person.
    """

    @abstractmethod
    def compare(
        self, probe_embedding: np.ndarray, template_embedding: np.ndarray
    ) -> MatchResult:
        """
        Compare two face descriptors.

        Args:
            probe_embedding: (D,) descriptor captured at verification.
            template_embedding: (D,) enrolled template.

        Returns:
            MatchResult with score in [0, 1] and the match decision.
        """
