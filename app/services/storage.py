import logging
import mimetypes
import os
import time
import uuid
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings

logger = logging.getLogger(__name__)


class StorageUploadError(Exception):
    pass


@dataclass
class UploadedFile:
    """File contents read from a multipart upload."""
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


class StorageService:
    """Object storage for receipts and course materials (S3 API, works with R2)."""

    def __init__(self):
        self._client = None
        self.bucket_name = settings.STORAGE_BUCKET_NAME

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.STORAGE_ENDPOINT_URL,
                region_name=settings.STORAGE_REGION,
                aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID,
                aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def _public_base(self) -> str:
        if settings.STORAGE_PUBLIC_DOMAIN:
            return settings.STORAGE_PUBLIC_DOMAIN.rstrip("/")
        return f"https://{self.bucket_name}.s3.{settings.STORAGE_REGION}.amazonaws.com"

    def build_key(self, filename: Optional[str], folder: str) -> str:
        # Timestamp plus random suffix; original names may carry characters unsafe in keys
        ext = os.path.splitext(filename or "")[1].lstrip(".").lower() or "file"
        return f"{folder.strip('/')}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"

    def key_from_url(self, url: str) -> str:
        base = self._public_base() + "/"
        return url[len(base):] if url.startswith(base) else url

    def upload_file(
        self, content: bytes, filename: Optional[str], content_type: Optional[str], folder: str
    ) -> str:
        key = self.build_key(filename, folder)
        content_type = content_type or mimetypes.guess_type(filename or "")[0] or "application/octet-stream"
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Storage upload failed for {key}: {e}")
            raise StorageUploadError(f"Failed to upload file: {e}") from e
        logger.info(f"Uploaded {key} ({len(content)} bytes)")
        return f"{self._public_base()}/{key}"

    def delete_file(self, url: str) -> None:
        key = self.key_from_url(url)
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info(f"Deleted {key} from storage")
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Storage delete failed for {key}: {e}")

storage_service = StorageService()
