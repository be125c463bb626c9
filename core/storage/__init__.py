"""Resume storage backends."""

from core.config import settings
from core.storage.base import ResumeStorage, StorageError
from core.storage.local import LocalStorage
from core.storage.supabase import SupabaseStorage


def get_storage() -> ResumeStorage:
    """Build the storage backend selected by STORAGE_BACKEND."""
    if settings.storage_backend == "local":
        return LocalStorage(
            base_path=settings.local_storage_path,
            bucket=settings.resume_bucket,
            base_url=settings.local_storage_base_url,
        )
    return SupabaseStorage(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        bucket=settings.resume_bucket,
    )


__all__ = [
    "LocalStorage",
    "ResumeStorage",
    "StorageError",
    "SupabaseStorage",
    "get_storage",
]
