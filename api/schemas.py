"""
Pydantic Schemas for API Request/Response Models

This module defines the wire contract between the capture client
(frontend/api_client.py) and the identity service (api/app.py).

These schemas provide:
- Type validation on both sides of the wire
- Automatic documentation in OpenAPI/Swagger
- Detection of malformed responses on the client

`success` fields are strict booleans: a body carrying "true" or 1 is
malformed, never a success.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, StrictBool, model_validator

from core.observation import EMBEDDING_DIM


# ============================================================
# Registration Schemas
# ============================================================

class RegisterRequest(BaseModel):
    """Register a new identity with its averaged template."""
    name: str = Field(..., min_length=1, description="Identity label")
    descriptor: List[float] = Field(
        ...,
        min_length=EMBEDDING_DIM,
        max_length=EMBEDDING_DIM,
        description=f"Averaged face descriptor ({EMBEDDING_DIM} floats)",
    )


class RegisterResponse(BaseModel):
    """Result of a registration request."""
    success: StrictBool = Field(..., description="Whether the identity was stored")
    message: Optional[str] = Field(None, description="Rejection reason")


# ============================================================
# Verification Schemas
# ============================================================

class VerifyRequest(BaseModel):
    """Verify a single captured descriptor against stored identities."""
    descriptor: List[float] = Field(
        ...,
        min_length=EMBEDDING_DIM,
        max_length=EMBEDDING_DIM,
        description=f"Captured face descriptor ({EMBEDDING_DIM} floats)",
    )


class MatchedUser(BaseModel):
    """The identity a descriptor was matched to."""
    name: str


class VerifyResponse(BaseModel):
    """Result of a verification request. success=false means no match."""
    success: StrictBool = Field(..., description="Whether a stored identity matched")
    user: Optional[MatchedUser] = Field(None, description="Matched identity")
    distance: Optional[float] = Field(None, description="Distance to the matched template")

    @model_validator(mode="after")
    def _require_user_on_success(self):
        if self.success and self.user is None:
            raise ValueError("successful verification must name the matched user")
        return self


# ============================================================
# Identity Management Schemas
# ============================================================

class UserSummary(BaseModel):
    """One enrolled identity."""
    name: str


class DeleteResponse(BaseModel):
    """Result of an identity deletion."""
    success: StrictBool = Field(..., description="Whether the identity was removed")
    message: Optional[str] = Field(None, description="Status or rejection reason")


# ============================================================
# Health Check Schemas
# ============================================================

class HealthResponse(BaseModel):
    """Development server health check response."""
    status: str = Field(..., description="Overall status")
    enrolled_users: int = Field(..., description="Number of enrolled identities")
    distance_threshold: float = Field(..., description="Match threshold in use")
