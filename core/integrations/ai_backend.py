"""
Client for the external AI screening backend.

Every workflow action maps onto exactly one HTTP call. The backend is
treated as an opaque collaborator: responses are returned as parsed JSON
dictionaries and failures are normalized into `AIBackendError`.
"""

from typing import Any, Optional
import logging

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "recruiting-api/0.1"


class AIBackendError(Exception):
    """
    Raised when the AI backend cannot complete a call.

    Attributes:
        status_code: Upstream HTTP status, None if no response was received
        payload: Parsed upstream response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


def _error_message(response: httpx.Response, payload: Any) -> str:
    """Prefer the backend's own message over a generic one."""
    if isinstance(payload, dict):
        for key in ("detail", "error", "message"):
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return f"AI backend error: {response.reason_phrase or response.status_code}"


class AIBackendClient:
    """Thin async wrapper around the AI backend HTTP API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the AI backend
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used to stub the backend in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def request(
        self,
        endpoint: str,
        method: str = "POST",
        json: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Call one AI backend endpoint.

        Args:
            endpoint: Path relative to the base URL
            method: HTTP method (GET, POST or PUT)
            json: JSON body
            files: Multipart files, httpx `files=` format

        Returns:
            Parsed JSON response ({} for empty bodies)

        Raises:
            AIBackendError: On non-2xx responses or transport failures
        """
        url = f"{self.base_url}{endpoint}"
        logger.info(f"[AI Backend] Calling {method} {url}")

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            try:
                response = await client.request(method, url, json=json, files=files)
            except httpx.RequestError as e:
                logger.error(f"[AI Backend] No response ({method} {endpoint}): {e}")
                raise AIBackendError("No response from AI backend") from e

        payload = _parse_body(response)
        logger.info(f"[AI Backend] Response status: {response.status_code}")

        if response.is_error:
            message = _error_message(response, payload)
            logger.error(
                f"[AI Backend] Call failed ({method} {endpoint}): "
                f"{response.status_code} {message}"
            )
            raise AIBackendError(message, status_code=response.status_code, payload=payload)

        return payload if isinstance(payload, dict) else {"data": payload}

    # ==================== Workflow actions ===================== #

    async def create_application(
        self, job_id: str, job_description: str, resume_text: str = ""
    ) -> dict[str, Any]:
        return await self.request(
            "/api/applications",
            json={
                "job_id": job_id,
                "job_description": job_description,
                "resume_text": resume_text,
            },
        )

    async def upload_resume(
        self, ai_application_id: str, filename: str, content: bytes
    ) -> dict[str, Any]:
        return await self.request(
            f"/api/applications/{ai_application_id}/upload_resume",
            files={"file": (filename, content, "application/pdf")},
        )

    async def screen(self, ai_application_id: str) -> dict[str, Any]:
        return await self.request(f"/api/applications/{ai_application_id}/screen")

    async def shortlist(self, ai_application_id: str, decision: str) -> dict[str, Any]:
        return await self.request(
            f"/api/applications/{ai_application_id}/shortlist",
            method="PUT",
            json={"decision": decision},
        )

    async def schedule(
        self, ai_application_id: str, scheduled_at: str, timezone: str = "UTC"
    ) -> dict[str, Any]:
        return await self.request(
            f"/api/applications/{ai_application_id}/schedule",
            json={"scheduled_at": scheduled_at, "timezone": timezone},
        )

    async def send_offer(
        self, ai_application_id: str, offer: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.request(f"/api/applications/{ai_application_id}/offer", json=offer)

    async def complete_compliance(
        self, ai_application_id: str, notes: Optional[str] = None
    ) -> dict[str, Any]:
        return await self.request(
            f"/api/applications/{ai_application_id}/compliance",
            json={"notes": notes},
        )
