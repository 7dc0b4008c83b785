# movie_api/repositories/blob_store.py
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from movie_api.core.config import Settings
from movie_api.core.errors import UpstreamStorageError
from movie_api.core.image_refs import KEY_PREFIX, extract_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str


class BlobStore(ABC):
    """
    Storage for uploaded images, addressed by key (``images/<filename>``).
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        """Store the bytes and return the key plus the public reference.

        Raises UpstreamStorageError when the backend rejects the write.
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete by key. Never raises; returns False when nothing was deleted."""


class S3BlobStore(BlobStore):
    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        client=None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        if not bucket_name:
            raise ValueError("AWS_S3_BUCKET_NAME must be set to use the s3 storage backend")
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        if client is None:
            # without explicit keys boto3 falls back to its default credential chain
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                endpoint_url=endpoint_url,
            )
        self.client = client
        logger.info("S3 blob store ready for bucket %s in %s", bucket_name, region)

    @classmethod
    def from_settings(cls, settings: Settings, client=None) -> "S3BlobStore":
        return cls(
            bucket_name=settings.AWS_S3_BUCKET_NAME,
            region=settings.AWS_REGION,
            client=client,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.S3_ENDPOINT_URL,
        )

    def public_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def _describe_failure(self, error: Exception) -> str:
        if isinstance(error, NoCredentialsError):
            return "Image storage credentials are not configured"
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            if code == "InvalidAccessKeyId":
                return "Image storage rejected the configured access key"
            if code == "SignatureDoesNotMatch":
                return "Image storage rejected the configured secret key"
            if code == "NoSuchBucket":
                return f'Image storage bucket "{self.bucket_name}" does not exist'
            if code in ("AccessDenied", "AllAccessDisabled"):
                return f'Access denied to image storage bucket "{self.bucket_name}"'
        return "Image upload failed"

    def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        params = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        try:
            try:
                self.client.put_object(ACL="public-read", **params)
            except ClientError as acl_error:
                # buckets with object ownership enforced reject any ACL
                code = acl_error.response.get("Error", {}).get("Code", "")
                if code != "AccessControlListNotSupported":
                    raise
                logger.warning(
                    "Bucket %s has ACLs disabled, uploading %s without ACL", self.bucket_name, key
                )
                self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload of %s failed", key, exc_info=True)
            raise UpstreamStorageError(self._describe_failure(e)) from e

        url = self.public_url(key)
        logger.info("Uploaded %s to %s", key, url)
        return StoredBlob(key=key, url=url)

    def delete(self, key: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError):
            logger.error("S3 delete of %s failed", key, exc_info=True)
            return False
        logger.info("Deleted %s from bucket %s", key, self.bucket_name)
        return True


class LocalBlobStore(BlobStore):
    """
    Keeps images on local disk; served by the app under ``/images``.
    """

    def __init__(self, root: Path, url_prefix: str = "/images"):
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, key: str) -> Optional[Path]:
        filename = extract_filename(key)
        return self.root / filename if filename else None

    def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        path = self.path_for(key)
        if path is None:
            raise UpstreamStorageError(f"Invalid storage key: {key}")
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.error("Writing %s failed", path, exc_info=True)
            raise UpstreamStorageError("Image could not be saved") from e
        logger.info("Saved %s (%d bytes, %s)", path, len(data), content_type)
        return StoredBlob(key=key, url=f"{self.url_prefix}/{path.name}")

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if path is None or not path.is_file():
            return False
        try:
            path.unlink()
        except OSError:
            logger.error("Deleting %s failed", path, exc_info=True)
            return False
        logger.info("Deleted %s", path)
        return True


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.STORAGE_BACKEND == "s3":
        return S3BlobStore.from_settings(settings)
    return LocalBlobStore(Path(settings.IMAGES_DIR))


def storage_key(filename: str) -> str:
    return f"{KEY_PREFIX}{filename}"
