"""
Tests for error handling: typed API errors, the JSON error envelope,
exception handlers and the ASGI safety-net middleware.
"""

import pytest
import json
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, OperationalError

from core.middleware.error_handling import (
    APIError,
    BadRequestError,
    ErrorHandlingMiddleware,
    ForbiddenError,
    InvalidStatusTransitionError,
    NotFoundError,
    UnauthorizedError,
    UpstreamServiceError,
    build_error_body,
    get_safe_error_details,
    sanitize_error_message,
    setup_error_handlers,
)


class TestSensitiveDataSanitization:
    """Secrets must never reach a response body or a log line."""

    @pytest.mark.parametrize("sensitive_input,secret", [
        ('password="secret123"', "secret123"),
        ('token="abc123xyz"', "abc123xyz"),
        ('api_key="sk_live_12345"', "sk_live_12345"),
        ('client_secret:abc123', "abc123"),
        ('upstream said: Bearer eyJhbGciOi.payload.sig', "eyJhbGciOi.payload.sig"),
        ("Authorization: Bearer abc.def.ghi123", "abc.def.ghi123"),
        ('{"token": "tok_live_987"}', "tok_live_987"),
    ])
    def test_sanitize_sensitive_patterns(self, sensitive_input, secret):
        sanitized = sanitize_error_message(sensitive_input)

        assert "[REDACTED]" in sanitized
        assert secret not in sanitized

    @pytest.mark.parametrize("safe_input", [
        "Job not found",
        "Application must be shortlisted before scheduling interview",
        'email="user@example.com"',
        "Missing or invalid authorization header",
        "token expired soon",
        "Bearer token required",
    ])
    def test_safe_messages_unchanged(self, safe_input):
        assert sanitize_error_message(safe_input) == safe_input

    def test_multiple_sensitive_fields_in_one_message(self):
        message = 'Error: password="secret" and token="abc123" and api_key="xyz789"'
        sanitized = sanitize_error_message(message)

        assert "secret" not in sanitized
        assert "abc123" not in sanitized
        assert "xyz789" not in sanitized
        assert sanitized.count("[REDACTED]") == 3

    def test_edge_case_empty_string(self):
        assert sanitize_error_message("") == ""


class TestSafeErrorDetails:
    """Test safe error detail extraction."""

    def test_basic_exception_details(self):
        details = get_safe_error_details(ValueError("Test error message"))

        assert details["type"] == "ValueError"
        assert details["message"] == "Test error message"
        assert "traceback" not in details

    def test_details_with_debug_mode(self):
        details = get_safe_error_details(ValueError("Test error"), include_details=True)
        assert isinstance(details["traceback"], str)

    def test_sanitization_in_error_details(self):
        details = get_safe_error_details(ValueError("Error with password=secret123"))

        assert "secret123" not in details["message"]
        assert "[REDACTED]" in details["message"]


class TestAPIErrors:
    """Typed errors carry their HTTP status and error code."""

    @pytest.mark.parametrize("error_cls,status_code,code", [
        (BadRequestError, 400, "BAD_REQUEST"),
        (InvalidStatusTransitionError, 400, "INVALID_STATUS_TRANSITION"),
        (UnauthorizedError, 401, "UNAUTHORIZED"),
        (ForbiddenError, 403, "FORBIDDEN"),
        (NotFoundError, 404, "NOT_FOUND"),
        (UpstreamServiceError, 500, "UPSTREAM_ERROR"),
    ])
    def test_error_classes(self, error_cls, status_code, code):
        error = error_cls("message")

        assert error.status_code == status_code
        assert error.code == code
        assert error.message == "message"
        assert isinstance(error, APIError)

    def test_status_and_code_override(self):
        error = APIError("Upstream rejected input", status_code=400, code="BAD_REQUEST")

        assert error.status_code == 400
        assert error.code == "BAD_REQUEST"
        # Class defaults stay untouched
        assert APIError.status_code == 500

    def test_build_error_body(self):
        body = build_error_body(
            "UPSTREAM_ERROR", "failed", "/api/x", "POST",
            details="boom", extra={"resume_file_url": "http://f"},
        )

        assert body == {
            "error": {
                "code": "UPSTREAM_ERROR",
                "message": "failed",
                "path": "/api/x",
                "method": "POST",
                "details": "boom",
            },
            "resume_file_url": "http://f",
        }

    def test_build_error_body_omits_missing_details(self):
        body = build_error_body("NOT_FOUND", "missing", "/x", "GET")
        assert "details" not in body["error"]


class JobPayload(BaseModel):
    title: str = Field(..., min_length=3)


class TestErrorHandlingMiddleware:
    """Test the exception handlers and middleware on a small app."""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        setup_error_handlers(app)
        app.add_middleware(ErrorHandlingMiddleware, debug=False)

        @app.get("/success")
        async def success():
            return {"message": "success"}

        @app.get("/not-found")
        async def not_found():
            raise NotFoundError("Job not found")

        @app.get("/upstream")
        async def upstream():
            raise UpstreamServiceError(
                "Resume uploaded but failed to sync with AI backend",
                details="No response from AI backend",
                extra={"resume_file_url": "http://files.test/resumes/a.pdf"},
            )

        @app.get("/forbidden")
        async def forbidden():
            raise ForbiddenError(
                "Forbidden: Insufficient permissions",
                details={"user_role": "candidate", "required_roles": ["recruiter"]},
            )

        @app.post("/jobs")
        async def create(payload: JobPayload):
            return payload

        @app.get("/http-error")
        async def http_error():
            raise HTTPException(status_code=418, detail="Teapot with token=abc123")

        @app.get("/database-integrity-error")
        async def db_integrity_error():
            raise IntegrityError("duplicate key", None, Exception("UNIQUE constraint failed"))

        @app.get("/database-operational-error")
        async def db_operational_error():
            raise OperationalError("connection lost", None, Exception("server closed"))

        @app.get("/timeout-error")
        async def timeout_err():
            raise TimeoutError("Request timed out")

        @app.get("/generic-error")
        async def generic_err():
            raise RuntimeError("Unexpected error with api_key=secret")

        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app)

    def test_successful_request(self, client):
        response = client.get("/success")
        assert response.status_code == 200
        assert response.json() == {"message": "success"}

    def test_api_error_envelope(self, client):
        response = client.get("/not-found")

        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "code": "NOT_FOUND",
                "message": "Job not found",
                "path": "/not-found",
                "method": "GET",
            }
        }

    def test_api_error_details_and_extra(self, client):
        response = client.get("/upstream")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "UPSTREAM_ERROR"
        assert data["error"]["details"] == "No response from AI backend"
        assert data["resume_file_url"] == "http://files.test/resumes/a.pdf"

    def test_forbidden_carries_roles(self, client):
        response = client.get("/forbidden")

        assert response.status_code == 403
        assert response.json()["error"]["details"]["required_roles"] == ["recruiter"]

    def test_validation_error_is_400(self, client):
        response = client.post("/jobs", json={"title": "ab"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Validation failed"
        assert error["details"][0]["field"] == "body.title"

    def test_http_exception_handling(self, client):
        response = client.get("/http-error")

        assert response.status_code == 418
        data = response.json()
        assert data["error"]["code"] == "HTTP_EXCEPTION"
        assert "abc123" not in json.dumps(data)

    def test_unknown_route(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"

    def test_database_integrity_error(self, client):
        response = client.get("/database-integrity-error")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INTEGRITY_ERROR"

    def test_database_operational_error(self, client):
        response = client.get("/database-operational-error")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "DATABASE_ERROR"

    def test_timeout_error(self, client):
        response = client.get("/timeout-error")

        assert response.status_code == 504
        assert response.json()["error"]["code"] == "TIMEOUT"

    def test_generic_error_handling(self, client):
        response = client.get("/generic-error")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert data["error"]["message"] == "An unexpected error occurred"
        assert "secret" not in json.dumps(data)
        assert "details" not in data["error"]

    def test_request_id_echoed_in_unhandled_error(self, client):
        response = client.get("/generic-error", headers={"x-request-id": "req-123"})
        assert response.json()["error"]["request_id"] == "req-123"

    def test_debug_mode_includes_details(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware, debug=True)

        @app.get("/error")
        async def error():
            raise ValueError("Test error")

        response = TestClient(app).get("/error")

        assert response.status_code == 500
        details = response.json()["error"]["details"]
        assert details["type"] == "ValueError"
        assert "traceback" in details
