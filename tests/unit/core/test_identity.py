"""
Tests for bearer token verification against the identity provider.
"""

import httpx
import pytest

from core.integrations.identity import (
    IdentityProviderClient,
    IdentityProviderError,
    IdentityUser,
    InvalidTokenError,
)


def make_client(handler) -> IdentityProviderClient:
    return IdentityProviderClient(
        "https://identity.test/",
        "service-key",
        transport=httpx.MockTransport(handler),
    )


class TestGetUser:

    @pytest.mark.asyncio
    async def test_valid_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["authorization"] = request.headers["authorization"]
            return httpx.Response(200, json={"id": "4b0c", "email": "a@example.com"})

        user = await make_client(handler).get_user("user-token")

        assert user == IdentityUser(id="4b0c", email="a@example.com")
        assert seen == {
            "url": "https://identity.test/auth/v1/user",
            "apikey": "service-key",
            "authorization": "Bearer user-token",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_rejected_token(self, status_code):
        client = make_client(lambda request: httpx.Response(status_code, json={"msg": "bad jwt"}))

        with pytest.raises(InvalidTokenError):
            await client.get_user("expired")

    @pytest.mark.asyncio
    async def test_response_without_id_is_invalid(self):
        client = make_client(lambda request: httpx.Response(200, json={"email": "x@example.com"}))

        with pytest.raises(InvalidTokenError):
            await client.get_user("token")

    @pytest.mark.asyncio
    async def test_provider_error(self):
        client = make_client(lambda request: httpx.Response(503))

        with pytest.raises(IdentityProviderError) as exc_info:
            await client.get_user("token")

        assert not isinstance(exc_info.value, InvalidTokenError)

    @pytest.mark.asyncio
    async def test_provider_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(IdentityProviderError):
            await make_client(handler).get_user("token")
