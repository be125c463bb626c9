"""
Tests for bearer-token authentication and role checks.

Tests:
- Missing / malformed Authorization header
- Tokens rejected by the identity provider
- Valid token without a local user row
- Identity provider outage
- Role enforcement and the current-user endpoint
"""

import uuid

import pytest

from database.models import UserRole


class TestAuthentication:
    """Test the authentication dependency through /api/auth/me."""

    @pytest.mark.asyncio
    async def test_missing_header(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Missing or invalid authorization header"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "basic abc"])
    async def test_malformed_header(self, client, header):
        response = await client.get("/api/auth/me", headers={"Authorization": header})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejected_token(self, client):
        response = await client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-real-token"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_valid_token_without_local_user(self, client, identity):
        identity.tokens["orphan"] = {"id": str(uuid.uuid4()), "email": "ghost@example.com"}

        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer orphan"})

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_identity_provider_outage(self, client, identity, create_user):
        _, headers = await create_user(UserRole.CANDIDATE)
        identity.fail_with = 503

        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_current_user(self, client, create_user):
        user, headers = await create_user(UserRole.RECRUITER, email="rec@example.com")

        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json() == {
            "user": {"id": str(user.id), "email": "rec@example.com", "role": "recruiter"}
        }


class TestRoleChecks:
    """Role-restricted routes answer 403 with the roles involved."""

    @pytest.mark.asyncio
    async def test_candidate_cannot_post_jobs(self, client, create_user):
        _, headers = await create_user(UserRole.CANDIDATE)

        response = await client.post("/api/jobs", json={"title": "Engineer"}, headers=headers)

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["message"] == "Forbidden: Insufficient permissions"
        assert error["details"]["user_role"] == "candidate"
        assert error["details"]["required_roles"] == ["recruiter"]
        assert error["details"]["message"] == (
            "Required role: recruiter, but user has role: candidate"
        )

    @pytest.mark.asyncio
    async def test_recruiter_cannot_read_admin_stats(self, client, create_user):
        _, headers = await create_user(UserRole.RECRUITER)

        response = await client.get("/api/admin/stats", headers=headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_auth_checked_before_body_validation(self, client):
        response = await client.post("/api/jobs", json={})
        assert response.status_code == 401
