"""Shared storage types."""

from typing import Protocol


class StorageError(Exception):
    """Raised when an object cannot be written to storage."""


class ResumeStorage(Protocol):
    """Interface shared by the storage backends."""

    bucket: str

    async def upload(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        ...

    def public_url(self, key: str) -> str:
        ...
