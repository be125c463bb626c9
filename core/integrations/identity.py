"""Identity provider client used to verify bearer tokens."""

from dataclasses import dataclass
from typing import Optional
import logging

import httpx

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Raised when the identity provider cannot be reached or misbehaves."""


class InvalidTokenError(IdentityProviderError):
    """Raised when the provider rejects the token."""


@dataclass(frozen=True)
class IdentityUser:
    """Identity as asserted by the provider."""

    id: str
    email: Optional[str] = None


class IdentityProviderClient:
    """Verifies access tokens against the provider's `/auth/v1/user` endpoint."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.timeout = timeout
        self._transport = transport

    async def get_user(self, token: str) -> IdentityUser:
        """
        Resolve a bearer token to the provider's user.

        Args:
            token: Access token taken from the Authorization header

        Returns:
            The provider's user id and email

        Raises:
            InvalidTokenError: If the token is expired, malformed or revoked
            IdentityProviderError: If the provider is unavailable
        """
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {token}",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
            except httpx.RequestError as e:
                logger.error(f"Identity provider request failed: {e}")
                raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if response.status_code in (400, 401, 403, 404):
            raise InvalidTokenError("Invalid or expired token")
        if response.is_error:
            logger.error(f"Identity provider error: {response.status_code}")
            raise IdentityProviderError(
                f"Identity provider returned {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise IdentityProviderError("Identity provider returned invalid JSON") from e

        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise InvalidTokenError("Token did not resolve to a user")

        return IdentityUser(id=str(user_id), email=data.get("email"))
