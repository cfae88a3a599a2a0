"""
Template averaging.

Turns the embeddings accepted during enrollment into one identity
template: the per-dimension arithmetic mean.
"""

from typing import Sequence

import numpy as np

from core.observation import EMBEDDING_DIM


def average_embeddings(
    embeddings: Sequence[np.ndarray],
    embedding_dim: int = EMBEDDING_DIM,
) -> np.ndarray:
    """
    Compute the enrollment template.

    Args:
        embeddings: N >= 1 embeddings, each of shape (embedding_dim,).
        embedding_dim: Expected dimensionality.

    Returns:
        (embedding_dim,) float32 array; element i is the mean of element i
        across all inputs.

    Raises:
        ValueError: If no embeddings are given or a shape is wrong.
    """
    if len(embeddings) == 0:
        raise ValueError("Cannot build a template from zero embeddings")

    stacked = np.stack([np.asarray(e, dtype=np.float64).ravel() for e in embeddings])
    if stacked.shape[1] != embedding_dim:
        raise ValueError(
            f"Embeddings must have {embedding_dim} values, got {stacked.shape[1]}"
        )

    # Accumulate in float64, store as float32 like the raw descriptors
    return stacked.mean(axis=0).astype(np.float32)
