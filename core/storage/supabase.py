"""Object storage on the identity provider's storage API (Supabase)."""

from typing import Optional
import logging

import httpx

from core.storage.base import StorageError

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Async uploads to a Supabase storage bucket over its REST API."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str = "resumes",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Supabase storage.

        Args:
            base_url: Project URL (SUPABASE_URL)
            service_key: Service role key, sent as `apikey` and bearer token
            bucket: Bucket name
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._transport = transport

    def _headers(self, content_type: str) -> dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": content_type,
            "x-upsert": "false",
        }

    async def upload(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        """
        Upload bytes to `<bucket>/<key>` without overwriting.

        Returns:
            The stored key

        Raises:
            StorageError: On transport failure or a non-2xx response
        """
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, content=data, headers=self._headers(content_type))
            except httpx.RequestError as e:
                logger.error(f"Storage upload failed for {self.bucket}/{key}: {e}")
                raise StorageError(f"Storage unreachable: {e}") from e

        if response.is_error:
            logger.error(
                f"Storage upload rejected for {self.bucket}/{key}: "
                f"{response.status_code} {response.text[:200]}"
            )
            raise StorageError(f"Storage returned {response.status_code}")

        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{key}")
        return key

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"
