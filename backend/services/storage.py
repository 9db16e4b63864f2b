"""
Storage service for uploaded images.

Uses an S3-compatible bucket when S3_BUCKET is set (AWS S3, Cloudflare R2,
MinIO) and the local UPLOAD_DIR otherwise. A failed bucket upload falls back
to local storage so the upload still succeeds.
"""
import os
import secrets
import string
import time
import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase
CACHE_CONTROL = "public, max-age=31536000"
LOCAL_URL_PREFIX = "/uploads"


@dataclass
class StoredFile:
    """Result of a stored upload."""
    filename: str
    url: str
    content_type: str
    size: int
    backend: str


def build_filename(original_name: Optional[str]) -> str:
    """`<epoch-ms>-<6 base36 chars><lowercased extension>`"""
    extension = os.path.splitext(original_name or "")[1].lower()
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}{extension}"


class StorageService:
    ALLOWED_IMAGE_TYPES = {
        'image/png': '.png',
        'image/jpeg': '.jpg',
        'image/gif': '.gif',
        'image/webp': '.webp',
    }

    def __init__(self, client=None, upload_dir: Optional[str] = None, bucket: Optional[str] = None):
        self._client = client
        self._bucket = settings.S3_BUCKET if bucket is None else bucket
        self._region = settings.S3_REGION
        self.upload_dir = upload_dir or settings.UPLOAD_DIR

    @property
    def use_bucket(self) -> bool:
        return bool(self._bucket)

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            config = Config(
                signature_version='s3v4',
                retries={'max_attempts': 3, 'mode': 'standard'}
            )

            client_kwargs = {
                'service_name': 's3',
                'region_name': self._region,
                'aws_access_key_id': settings.S3_ACCESS_KEY,
                'aws_secret_access_key': settings.S3_SECRET_KEY,
                'config': config,
            }

            # Custom endpoint for R2/MinIO
            if settings.S3_ENDPOINT:
                client_kwargs['endpoint_url'] = settings.S3_ENDPOINT

            self._client = boto3.client(**client_kwargs)

        return self._client

    def get_public_url(self, key: str) -> str:
        if settings.S3_ENDPOINT:
            return f"{settings.S3_ENDPOINT.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def validate_image(self, content: bytes, content_type: Optional[str], max_size: int) -> Optional[str]:
        """Return an error message for an unacceptable image, None when it is fine."""
        if content_type not in self.ALLOWED_IMAGE_TYPES:
            return f"Invalid content type: {content_type}. Allowed: {list(self.ALLOWED_IMAGE_TYPES.keys())}"

        if len(content) > max_size:
            max_mb = max_size / (1024 * 1024)
            actual_mb = len(content) / (1024 * 1024)
            return f"File too large: {actual_mb:.1f}MB. Max: {max_mb:.0f}MB"

        if not content:
            return "File is empty"

        return None

    def _save_to_bucket(self, filename: str, content: bytes, content_type: str) -> str:
        self.client.put_object(
            Bucket=self._bucket,
            Key=filename,
            Body=content,
            ContentType=content_type,
            CacheControl=CACHE_CONTROL,
        )
        return self.get_public_url(filename)

    def _save_to_local(self, filename: str, content: bytes, base_url: Optional[str]) -> str:
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(os.path.join(self.upload_dir, filename), "wb") as f:
            f.write(content)

        relative = f"{LOCAL_URL_PREFIX}/{filename}"
        if base_url:
            return f"{base_url.rstrip('/')}{relative}"
        return relative

    async def save_image(
        self,
        original_name: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> StoredFile:
        """
        Store an image under a fresh name and return where it can be fetched.

        Args:
            original_name: Client file name; only its extension is kept
            content: File bytes
            content_type: MIME type recorded on the bucket object
            base_url: When given, local URLs are made absolute against it
        """
        filename = build_filename(original_name)
        content_type = content_type or "application/octet-stream"

        if self.use_bucket:
            try:
                url = self._save_to_bucket(filename, content, content_type)
                logger.info(f"Uploaded image to bucket: {filename} -> {url}")
                return StoredFile(filename, url, content_type, len(content), "s3")
            except ClientError as e:
                error_msg = e.response.get('Error', {}).get('Message', str(e))
                logger.error(f"S3 upload failed, falling back to local storage: {error_msg}")
            except BotoCoreError as e:
                logger.error(f"S3 upload failed, falling back to local storage: {e}")

        url = self._save_to_local(filename, content, base_url)
        logger.info(f"Stored image locally: {filename}")
        return StoredFile(filename, url, content_type, len(content), "local")
