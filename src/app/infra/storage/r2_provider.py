# src/app/infra/storage/r2_provider.py
"""
Cloudflare R2 backend for audio blobs (STORAGE_BACKEND=r2).
R2 speaks the S3 API, so boto3 talks to the account endpoint directly.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.app.domain.errors import StorageError
from src.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

_REQUIRED_ENV = (
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET_NAME",
    "R2_PUBLIC_URL",
)


class R2StorageProvider(StorageProvider):
    """
    Audio blobs in an R2 bucket served from a public base URL.

    Objects are written create-only (``If-None-Match: *``), so a key collision
    fails instead of replacing someone else's recording.
    """

    def __init__(
        self,
        account_id: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        bucket_name: Optional[str] = None,
        public_url: Optional[str] = None,
        client=None,
    ):
        values = dict(zip(
            _REQUIRED_ENV,
            (account_id, access_key_id, secret_access_key, bucket_name, public_url),
        ))
        resolved = {name: value or os.getenv(name) for name, value in values.items()}
        missing = [name for name, value in resolved.items() if not value]
        if missing:
            raise StorageError(f"Missing R2 configuration: {', '.join(missing)}")

        self.bucket_name = resolved["R2_BUCKET_NAME"]
        self.public_base_url = resolved["R2_PUBLIC_URL"].rstrip("/")
        endpoint = f"https://{resolved['R2_ACCOUNT_ID']}.r2.cloudflarestorage.com"

        self._s3 = client or boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=resolved["R2_ACCESS_KEY_ID"],
            aws_secret_access_key=resolved["R2_SECRET_ACCESS_KEY"],
            config=Config(signature_version="s3v4"),
            region_name="auto",
        )
        logger.info("R2 audio storage ready: bucket=%s", self.bucket_name)

    def upload_object(self, object_key: str, data: bytes, content_type: str) -> None:
        try:
            self._s3.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
                IfNoneMatch="*",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "unknown")
            logger.error("R2 put failed: key=%s, code=%s", object_key, code)
            raise StorageError(f"Upload failed: {code}") from e
        except BotoCoreError as e:
            logger.error("R2 put rejected before sending: key=%s, error=%s", object_key, e)
            raise StorageError(f"Upload failed: {e}") from e

        logger.info("Stored audio in R2: key=%s, size=%d bytes", object_key, len(data))

    def get_public_url(self, object_key: str) -> str:
        return f"{self.public_base_url}/{object_key}"

    def delete_object(self, object_key: str) -> bool:
        try:
            self._s3.delete_object(Bucket=self.bucket_name, Key=object_key)
        except (ClientError, BotoCoreError) as e:
            logger.error("R2 delete failed: key=%s, error=%s", object_key, e)
            return False
        logger.info("Removed audio from R2: key=%s", object_key)
        return True
