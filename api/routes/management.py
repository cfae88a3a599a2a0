"""
Identity Management API Routes

This module provides REST endpoints for managing enrolled identities:
- GET /api/users: List all enrolled identities
- DELETE /api/delete/{name}: Delete an enrolled identity
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import template_store
from api.schemas import DeleteResponse, UserSummary
from core.template_manager import TemplateManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/users", response_model=List[UserSummary])
async def list_users(store: TemplateManager = Depends(template_store)):
    """List all enrolled identities in enrollment order."""
    return [UserSummary(name=u["name"]) for u in store.list_users()]


@router.delete("/delete/{name}", response_model=DeleteResponse)
async def delete_user(name: str, store: TemplateManager = Depends(template_store)):
    """
    Delete an enrolled identity.

    Returns:
        `{success: true}`, or 404 with `{success: false, message}` if the
        name is not enrolled.
    """
    if not store.delete_template(name):
        return JSONResponse(
            status_code=404,
            content=DeleteResponse(
                success=False, message=f"User {name} not found"
            ).model_dump(),
        )

    return DeleteResponse(success=True, message=f"User {name} deleted")
