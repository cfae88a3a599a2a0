"""
API Routes Package

This package contains route handlers organized by feature:
- identity.py: Registration and verification of identities
- management.py: Listing and deleting enrolled identities
"""

from api.routes.identity import router as identity_router
from api.routes.management import router as management_router

__all__ = [
    "identity_router",
    "management_router",
]
