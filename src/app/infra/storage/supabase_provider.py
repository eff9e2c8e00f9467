# src/app/infra/storage/supabase_provider.py
"""
Supabase Storage provider implementation.
"""
from __future__ import annotations

import logging

from supabase import Client

from src.app.domain.errors import StorageError
from src.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "audio-files"


class SupabaseStorageProvider(StorageProvider):
    """Stores audio blobs in a (public) Supabase Storage bucket."""

    def __init__(self, client: Client, bucket_name: str = DEFAULT_BUCKET):
        self._client = client
        self.bucket_name = bucket_name
        logger.info("SupabaseStorageProvider initialized: bucket=%s", bucket_name)

    def _bucket(self):
        return self._client.storage.from_(self.bucket_name)

    def upload_object(self, object_key: str, data: bytes, content_type: str) -> None:
        try:
            self._bucket().upload(
                object_key,
                data,
                file_options={
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error("Failed to upload to Supabase Storage: key=%s, error=%s", object_key, e)
            raise StorageError(f"Upload failed: {e}") from e

        logger.info("Uploaded object: key=%s, size=%d bytes", object_key, len(data))

    def get_public_url(self, object_key: str) -> str:
        return self._bucket().get_public_url(object_key)

    def delete_object(self, object_key: str) -> bool:
        try:
            self._bucket().remove([object_key])
            logger.info("Deleted object from Supabase Storage: key=%s", object_key)
            return True
        except Exception as e:
            logger.error("Failed to delete object from Supabase Storage: key=%s, error=%s", object_key, e)
            return False
