"""Local file storage, used in development and tests."""

import asyncio
from pathlib import Path
import logging

from core.storage.base import StorageError

logger = logging.getLogger(__name__)


class LocalStorage:
    """Stores objects as files under `<base_path>/<bucket>/`."""

    def __init__(
        self,
        base_path: str = "./storage",
        bucket: str = "resumes",
        base_url: str = "http://localhost:8000/files",
    ):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage
            bucket: Subfolder acting as the bucket
            base_url: URL prefix the files are served from
        """
        self.base_path = Path(base_path)
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        return self.base_path / self.bucket / key

    def _write(self, key: str, data: bytes) -> None:
        file_path = self._path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            # "xb" refuses to overwrite an existing object
            with open(file_path, "xb") as f:
                f.write(data)
        except FileExistsError as e:
            raise StorageError(f"Object already exists: {self.bucket}/{key}") from e
        except OSError as e:
            raise StorageError(f"Failed to write {self.bucket}/{key}: {e}") from e

    async def upload(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        """
        Save bytes under the given key.

        Returns:
            The stored key

        Raises:
            StorageError: If the key exists or the write fails
        """
        await asyncio.to_thread(self._write, key, data)
        logger.info(f"Saved {len(data)} bytes to {self._path(key)}")
        return key

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{self.bucket}/{key}"

    def exists(self, key: str) -> bool:
        return self._path(key).exists()
