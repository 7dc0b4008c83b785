# movie_api/models/upload.py
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from movie_api.models.user import utc_now


class ImageUpload(SQLModel, table=True):
    """Which user stored the blob under ``key``."""

    __tablename__ = "image_uploads"

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(index=True, unique=True, max_length=1024)
    owner_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=utc_now)
