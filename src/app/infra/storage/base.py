# src/app/infra/storage/base.py
"""
Abstract base class for blob storage providers.
This interface allows easy swapping between storage backends (Supabase Storage, R2, ...)
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import uuid4

from src.app.domain.media import get_file_extension


class StorageProvider(ABC):
    """
    Abstract interface for audio blob storage.

    Implementations:
    - SupabaseStorageProvider: Supabase Storage bucket
    - R2StorageProvider: Cloudflare R2 (S3-compatible)
    """

    @abstractmethod
    def upload_object(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> None:
        """
        Store an object. Must not overwrite an existing key.

        Args:
            object_key: The key/path where the object will be stored
            data: Raw file bytes
            content_type: MIME type of the content (e.g., "audio/mpeg")

        Raises:
            StorageError: If the write failed
        """
        pass

    @abstractmethod
    def get_public_url(self, object_key: str) -> str:
        """
        Resolve a publicly reachable URL for a stored object.

        Args:
            object_key: The key/path of the object

        Returns:
            The public URL
        """
        pass

    @abstractmethod
    def delete_object(self, object_key: str) -> bool:
        """
        Delete an object from storage.

        Args:
            object_key: The key/path of the object to delete

        Returns:
            True if deletion was successful
        """
        pass

    def generate_object_key(
        self,
        user_id: str,
        filename: str,
        prefix: str = "audio",
    ) -> str:
        """
        Generate a unique, user-scoped object key.

        Format: {prefix}/{user_id}/{uuid}.{ext}
        """
        extension = get_file_extension(filename)
        unique_name = f"{uuid4()}.{extension}" if extension else str(uuid4())
        return f"{prefix}/{user_id}/{unique_name}"
