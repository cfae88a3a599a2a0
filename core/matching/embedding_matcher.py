"""
Embedding Matcher: nearest enrolled identity by Euclidean distance.

128-d dlib / face-api descriptors are trained so that two images of the
same person lie within ~0.6 of each other in Euclidean distance, so the
decision is a plain distance threshold and 1:N identification picks the
closest template under it.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from core.matching.interfaces import EmbeddingMatcher, MatchResult
from core.template_manager import IdentityTemplate

logger = logging.getLogger(__name__)


class EuclideanEmbeddingMatcher(EmbeddingMatcher):
    """
    Compare face descriptors by Euclidean distance.

    Score maps distance d to max(0, 1 - d / (2 * threshold)), so a distance
    exactly at the threshold scores 0.5.

    Args:
        config: Dictionary with optional keys:
            - distance_threshold: Match iff distance < threshold (default 0.6)
    """

    def __init__(self, config: dict = None):
        if config is None:
            config = {}
        self.distance_threshold = float(config.get("distance_threshold", 0.6))

    def compare(
        self,
        probe_embedding: np.ndarray,
        template_embedding: np.ndarray,
    ) -> MatchResult:
        probe = np.asarray(probe_embedding, dtype=np.float32).ravel()
        template = np.asarray(template_embedding, dtype=np.float32).ravel()

        if probe.shape[0] != template.shape[0]:
            logger.error(
                f"Embedding dimension mismatch: probe={probe.shape[0]}, "
                f"template={template.shape[0]}"
            )
            return MatchResult(
                score=0.0,
                details={"method": "euclidean", "error": "dim_mismatch"},
                is_match=False,
            )

        distance = float(np.linalg.norm(probe - template))
        score = max(0.0, 1.0 - distance / (2.0 * self.distance_threshold))

        return MatchResult(
            score=score,
            details={"method": "euclidean", "distance": distance},
            is_match=distance < self.distance_threshold,
        )

    def find_best(
        self,
        probe_embedding: np.ndarray,
        templates: Sequence[IdentityTemplate],
    ) -> Optional[Tuple[IdentityTemplate, MatchResult]]:
        """
        1:N identification.

        Returns:
            (template, result) for the closest template if it is a match,
            otherwise None.
        """
        best: Optional[Tuple[IdentityTemplate, MatchResult]] = None
        for template in templates:
            result = self.compare(probe_embedding, template.descriptor)
            if "distance" not in result.details:
                continue
            if best is None or result.details["distance"] < best[1].details["distance"]:
                best = (template, result)

        if best is None or not best[1].is_match:
            return None
        return best
