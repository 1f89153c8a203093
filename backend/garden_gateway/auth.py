from __future__ import annotations

import asyncio

import httpx
import structlog
from fastapi import Header, Request

from garden_gateway.errors import (
    AuthenticationError,
    InvalidCredential,
    MalformedCredential,
    MissingCredential,
    VerifierUnavailable,
)


logger = structlog.get_logger(__name__)


def parse_bearer(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise MissingCredential("no Authorization header")
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise MalformedCredential("Authorization header is not 'Bearer <token>'")
    return parts[1]


class IdentityVerifier:
    """Resolves a bearer token to a user id via the Supabase auth API.

    Every call goes to the identity service; nothing is cached locally.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_url = f"{base_url.rstrip('/')}/auth/v1/user"
        self.service_key = service_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def verify(self, authorization: str | None) -> str:
        token = parse_bearer(authorization)
        try:
            response = await asyncio.wait_for(self._fetch_user(token), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise VerifierUnavailable(f"identity service exceeded {self.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise VerifierUnavailable(f"identity service unreachable: {type(exc).__name__}") from exc

        if response.status_code >= 500:
            raise VerifierUnavailable(f"identity service returned {response.status_code}")
        if response.status_code >= 400:
            raise InvalidCredential(f"identity service rejected token ({response.status_code})")

        try:
            user = response.json()
        except ValueError as exc:
            raise VerifierUnavailable("identity service returned an undecodable body") from exc

        user_id = user.get("id") if isinstance(user, dict) else None
        if not user_id:
            raise InvalidCredential("identity service returned no user")
        return str(user_id)

    async def _fetch_user(self, token: str) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_seconds) as client:
            return await client.get(
                self.user_url,
                headers={"apikey": self.service_key, "Authorization": f"Bearer {token}"},
            )


async def get_current_user_id(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str:
    verifier: IdentityVerifier = request.app.state.identity_verifier
    try:
        user_id = await verifier.verify(authorization)
    except AuthenticationError as exc:
        log = logger.error if isinstance(exc, VerifierUnavailable) else logger.info
        log("auth_rejected", reason=type(exc).__name__, detail=exc.detail, path=request.url.path)
        raise
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user_id
