"""
FastAPI dependencies shared by the identity routes.

Tests swap these out through ``app.dependency_overrides``.
"""

from functools import lru_cache

from core.config import get_matching_config
from core.matching import EuclideanEmbeddingMatcher
from core.template_manager import TemplateManager, get_template_manager


def template_store() -> TemplateManager:
    """The process-wide template store."""
    return get_template_manager()


@lru_cache(maxsize=1)
def embedding_matcher() -> EuclideanEmbeddingMatcher:
    """Matcher configured from the ``matching`` config section."""
    return EuclideanEmbeddingMatcher(get_matching_config())
