"""
Identity API Routes

This module provides:
- POST /api/register: store a new identity with its averaged descriptor
- POST /api/verify: find the enrolled identity closest to a descriptor

Rejections are answered with a `{success: false, message}` body so the
client can surface the reason verbatim.
"""

import logging

import numpy as np
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import embedding_matcher, template_store
from api.schemas import (
    MatchedUser,
    RegisterRequest,
    RegisterResponse,
    VerifyRequest,
    VerifyResponse,
)
from core.matching import EuclideanEmbeddingMatcher
from core.template_manager import IdentityTemplate, TemplateManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["identity"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    request: RegisterRequest,
    store: TemplateManager = Depends(template_store),
):
    """
    Register a new identity.

    Returns:
        `{success: true}`, or 409 with `{success: false, message}` when the
        name is already enrolled.
    """
    name = request.name.strip()
    if not name:
        return JSONResponse(
            status_code=422,
            content=RegisterResponse(success=False, message="Name is required").model_dump(),
        )

    try:
        store.save_template(
            IdentityTemplate(name=name, descriptor=np.asarray(request.descriptor))
        )
    except ValueError as e:
        logger.warning(f"Registration rejected: {e}")
        return JSONResponse(
            status_code=409,
            content=RegisterResponse(
                success=False,
                message=f"User '{name}' already exists. Please use a different name.",
            ).model_dump(),
        )

    logger.info(f"Registered identity: {name}")
    return RegisterResponse(success=True)


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
async def verify(
    request: VerifyRequest,
    store: TemplateManager = Depends(template_store),
    matcher: EuclideanEmbeddingMatcher = Depends(embedding_matcher),
):
    """
    Identify a descriptor against every enrolled identity (1:N).

    Returns:
        `{success: true, user: {name}, distance}` for the closest match under
        the threshold, otherwise `{success: false}`.
    """
    templates = store.load_all_templates()
    best = matcher.find_best(np.asarray(request.descriptor), templates)

    if best is None:
        logger.info(f"Verification: no match among {len(templates)} identities")
        return VerifyResponse(success=False)

    template, result = best
    distance = result.details["distance"]
    logger.info(f"Verification: matched {template.name} (distance={distance:.3f})")
    return VerifyResponse(
        success=True,
        user=MatchedUser(name=template.name),
        distance=distance,
    )
