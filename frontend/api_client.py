"""
API client for the identity service.

Async httpx client for the four identity operations (register, verify,
list, delete). Every response body is validated against the shared
pydantic schemas; anything that does not parse is reported as a
MalformedResponseError, never as success. Connection problems and
timeouts are reported as TransportError.

Usage:
    async with IdentityClient("http://localhost:3000") as client:
        result = await client.register("Alice", template)
"""

import logging
from typing import List, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import httpx
import numpy as np
from pydantic import BaseModel, TypeAdapter, ValidationError

from api.schemas import (
    DeleteResponse,
    RegisterRequest,
    RegisterResponse,
    UserSummary,
    VerifyRequest,
    VerifyResponse,
)
from core.errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_user_list_adapter = TypeAdapter(List[UserSummary])


def _descriptor_to_list(descriptor: Sequence[float]) -> List[float]:
    values = np.asarray(descriptor, dtype=np.float32).ravel()
    # JSON has no NaN / Infinity
    if not np.isfinite(values).all():
        raise ValueError("descriptor contains NaN or infinite values")
    return [float(v) for v in values]


class IdentityClient:
    """
    Client for communicating with the identity service.

    Args:
        base_url: Service root, e.g. "http://localhost:3000".
        timeout_sec: Per-request timeout handed to httpx.
        transport: Optional httpx transport (tests use MockTransport or
                   ASGITransport).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout_sec: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_sec,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_config(cls, api_config: dict, **kwargs) -> "IdentityClient":
        return cls(
            base_url=api_config.get("base_url", "http://localhost:3000"),
            timeout_sec=float(api_config.get("timeout_sec", 30.0)),
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "IdentityClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    # ==================== Transport ====================

    async def _request(self, method: str, path: str, **kwargs) -> object:
        """Send a request and return the decoded JSON body."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(f"{method} {path} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            snippet = response.text[:50]
            logger.warning(
                f"{method} {path} returned non-JSON ({response.status_code}): {snippet!r}"
            )
            raise MalformedResponseError(f"Server returned non-JSON: {snippet}") from e

    @staticmethod
    def _parse(model: Type[ModelT], body: object, operation: str) -> ModelT:
        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Malformed {operation} response: {e.error_count()} error(s)")
            raise MalformedResponseError(f"Malformed {operation} response") from e

    # ==================== Identity operations ====================

    async def register(self, name: str, descriptor: Sequence[float]) -> RegisterResponse:
        """
        Register an identity with its averaged template.

        Returns:
            RegisterResponse; success=False carries the server's message.
        """
        payload = RegisterRequest(name=name, descriptor=_descriptor_to_list(descriptor))
        body = await self._request("POST", "/api/register", json=payload.model_dump())
        result = self._parse(RegisterResponse, body, "register")
        logger.info(f"Register '{name}': success={result.success}")
        return result

    async def verify(self, descriptor: Sequence[float]) -> VerifyResponse:
        """
        Verify one captured descriptor.

        Returns:
            VerifyResponse; success=False means no stored identity matched.
        """
        payload = VerifyRequest(descriptor=_descriptor_to_list(descriptor))
        body = await self._request("POST", "/api/verify", json=payload.model_dump())
        result = self._parse(VerifyResponse, body, "verify")
        logger.info(
            f"Verify: success={result.success}"
            + (f" user={result.user.name}" if result.user else "")
        )
        return result

    async def list_users(self) -> List[UserSummary]:
        """Get the ordered list of enrolled identities."""
        body = await self._request("GET", "/api/users")
        try:
            return _user_list_adapter.validate_python(body)
        except ValidationError as e:
            raise MalformedResponseError("Malformed users response") from e

    async def delete_user(self, name: str) -> DeleteResponse:
        """Delete an enrolled identity by name."""
        logger.info(f"Attempting to delete user: {name}")
        body = await self._request("DELETE", f"/api/delete/{quote(name, safe='')}")
        return self._parse(DeleteResponse, body, "delete")
