import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlmodel import Session

from movie_api.core.errors import ValidationError
from movie_api.repositories.blob_store import BlobStore, storage_key
from movie_api.repositories.upload_repo import record_upload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedImage:
    image_url: str
    filename: str
    key: str


def make_filename(original_name: Optional[str]) -> str:
    """
    ``<ms timestamp>-<random int><original extension>``, e.g. ``1718031234567-48213.png``
    """
    ext = os.path.splitext(original_name or "")[1].lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def validate_image(
    data: Optional[bytes],
    content_type: Optional[str],
    allowed_types: Iterable[str],
    max_bytes: int,
) -> None:
    if data is None:
        raise ValidationError("No file uploaded")
    if (content_type or "").lower() not in {t.lower() for t in allowed_types}:
        raise ValidationError(
            "Only image files are allowed (" + ", ".join(allowed_types) + ")"
        )
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > max_bytes:
        raise ValidationError(
            f"File too large, the limit is {max_bytes} bytes"
        )


def store_image(
    store: BlobStore,
    data: Optional[bytes],
    original_name: Optional[str],
    content_type: Optional[str],
    allowed_types: Iterable[str],
    max_bytes: int,
) -> UploadedImage:
    # 1) reject before touching storage
    allowed_types = list(allowed_types)
    validate_image(data, content_type, allowed_types, max_bytes)

    # 2) hand the bytes to the configured backend; no fallback on failure
    filename = make_filename(original_name)
    logger.info("Storing upload %s (%d bytes)", filename, len(data))
    blob = store.put(storage_key(filename), data, content_type.lower())

    return UploadedImage(image_url=blob.url, filename=filename, key=blob.key)


def upload_image(
    db: Session,
    owner_id: int,
    store: BlobStore,
    data: Optional[bytes],
    original_name: Optional[str],
    content_type: Optional[str],
    allowed_types: Iterable[str],
    max_bytes: int,
) -> UploadedImage:
    """
    Store the image and remember who uploaded it, so that only that user's
    movies can later remove it.
    """
    stored = store_image(store, data, original_name, content_type, allowed_types, max_bytes)
    record_upload(db, stored.key, owner_id)
    return stored
