"""Shared fixtures and utilities for tests."""

import os
import tempfile


def _set_test_env():
    """Settings are read at import time, so this runs before the app is imported."""
    os.environ.setdefault("APP_ENV", "test")
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    os.environ.setdefault("SUPABASE_URL", "https://identity.test")
    os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
    os.environ.setdefault("AI_BACKEND_URL", "https://ai.test")
    os.environ.setdefault("STORAGE_BACKEND", "local")
    os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="resume-storage-"))
    os.environ.setdefault("JSON_LOGS", "false")
    os.environ.setdefault("SCREENING_PASS_SCORE", "60")


_set_test_env()

import uuid  # noqa: E402
from typing import Any, Callable, Optional  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from api.dependencies import get_ai_backend, get_identity_provider, get_storage  # noqa: E402
from api.main import app  # noqa: E402
from core.integrations.ai_backend import AIBackendClient  # noqa: E402
from core.integrations.identity import IdentityProviderClient  # noqa: E402
from core.storage.local import LocalStorage  # noqa: E402
from database.engine import Base, get_db  # noqa: E402
from database.models import Job, User, UserRole  # noqa: E402


AI_BASE_URL = "https://ai.test"
IDENTITY_BASE_URL = "https://identity.test"


def _create_minimal_pdf(text: str = "Test resume") -> bytes:
    """Create a minimal valid PDF with embedded text."""
    return (
        b"%PDF-1.4\n"
        b"1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
        b"2 0 obj<</Type/Pages/Kids[3 0 R]/Count 1>>endobj\n"
        b"3 0 obj<</Type/Page/Parent 2 0 R/MediaBox[0 0 612 792]/Contents 4 0 R>>endobj\n"
        b"4 0 obj<</Length 44>>stream\nBT /F1 12 Tf 100 700 Td ("
        + text.encode()
        + b") Tj ET\nendstream endobj\n"
        b"trailer<</Size 5/Root 1 0 R>>\n%%EOF"
    )


@pytest.fixture
def minimal_pdf():
    """Fixture providing a minimal valid PDF."""
    return _create_minimal_pdf()


# ==================== Fake collaborators ===================== #
class FakeAIBackend:
    """
    Records calls to the AI backend and answers from a per-path table.

    Responses are keyed by the last path segment ("applications",
    "upload_resume", "screen", ...). A value may be a dict (200 JSON), an
    `httpx.Response`, or an exception to raise from the transport.
    """

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.responses: dict[str, Any] = {
            "applications": {"application_id": 101},
            "upload_resume": {"resume_text_preview": "Python developer, 5 years"},
            "screen": {
                "status": "screening_passed",
                "screening_report": {"score": 82, "summary": "Strong match"},
            },
            "shortlist": {"ok": True},
            "schedule": {"interview_link": "https://meet.test/abc"},
            "offer": {"ok": True},
            "compliance": {"ok": True},
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        action = request.url.path.rstrip("/").split("/")[-1]
        answer = self.responses.get(action, {})
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.calls]

    def client(self) -> AIBackendClient:
        return AIBackendClient(AI_BASE_URL, transport=httpx.MockTransport(self.handler))


class FakeIdentityProvider:
    """Maps bearer tokens to identity-provider user ids."""

    def __init__(self):
        self.tokens: dict[str, dict[str, Any]] = {}
        self.fail_with: Optional[int] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"msg": "provider down"})
        auth = request.headers.get("authorization", "")
        token = auth.removeprefix("Bearer ")
        user = self.tokens.get(token)
        if not user:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(200, json=user)

    def client(self) -> IdentityProviderClient:
        return IdentityProviderClient(
            IDENTITY_BASE_URL,
            "test-service-role-key",
            transport=httpx.MockTransport(self.handler),
        )


# ==================== Database and app ===================== #
@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def ai_backend():
    return FakeAIBackend()


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(
        base_path=str(tmp_path / "storage"),
        bucket="resumes",
        base_url="http://files.test",
    )


@pytest_asyncio.fixture
async def client(session_factory, ai_backend, identity, storage):
    """HTTP client against the app with every collaborator replaced."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_backend] = ai_backend.client
    app.dependency_overrides[get_identity_provider] = identity.client
    app.dependency_overrides[get_storage] = lambda: storage

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_factory, identity) -> Callable:
    """Insert a local user and register a token for it. Returns (user, headers)."""

    async def _create(role: UserRole, email: Optional[str] = None):
        user_id = uuid.uuid4()
        email = email or f"{role.value}-{user_id.hex[:6]}@example.com"
        async with session_factory() as session:
            user = User(id=user_id, email=email, role=role.value)
            session.add(user)
            await session.commit()

        token = f"token-{user_id.hex}"
        identity.tokens[token] = {"id": str(user_id), "email": email}
        return user, {"Authorization": f"Bearer {token}"}

    return _create


@pytest.fixture
def create_job(session_factory) -> Callable:
    async def _create(recruiter: User, **fields) -> Job:
        fields.setdefault("title", "Backend Engineer")
        fields.setdefault("description", "Build APIs in Python")
        fields.setdefault("location", "Remote")
        async with session_factory() as session:
            job = Job(posted_by=recruiter.id, **fields)
            session.add(job)
            await session.commit()
            return job

    return _create
