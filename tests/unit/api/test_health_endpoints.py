"""Liveness and readiness probes."""

import pytest
from sqlalchemy.exc import OperationalError

from api.main import app
from database.engine import get_db


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/ready")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_not_ready_without_database(self, client):
        class DeadSession:
            async def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", None, Exception("connection refused"))

        async def dead_db():
            yield DeadSession()

        app.dependency_overrides[get_db] = dead_db

        response = await client.get("/ready")
        assert response.status_code == 503
