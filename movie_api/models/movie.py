# movie_api/models/movie.py
from typing import List, Optional
from datetime import datetime, timezone
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship
from pydantic import field_validator

from movie_api.models.user import User, utc_now

MIN_PUBLISH_YEAR = 1888  # first surviving motion picture


def search_key(text: str) -> str:
    """Case-folded form used for title search, e.g. ``"Élite"`` -> ``"élite"``."""
    return text.strip().casefold()


def _check_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Title cannot be empty")
    return v


def _check_year(v: Optional[int]) -> Optional[int]:
    if v is None:
        return v
    if v < MIN_PUBLISH_YEAR:
        raise ValueError(f"Publish year must be at least {MIN_PUBLISH_YEAR}")
    if v > datetime.now(timezone.utc).year + 1:
        raise ValueError("Publish year cannot be in the future")
    return v


def _check_image(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Image URL is required")
    return v


class MovieBase(SQLModel):
    title: str = Field(min_length=1, max_length=200, index=True)
    publish_year: int = Field(index=True)
    image_url: str = Field(max_length=2048)


class MovieCreate(MovieBase):
    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        return _check_title(v)

    @field_validator("publish_year")
    @classmethod
    def year_in_range(cls, v):
        return _check_year(v)

    @field_validator("image_url")
    @classmethod
    def image_not_blank(cls, v):
        return _check_image(v)


class MovieUpdate(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    publish_year: Optional[int] = None
    image_url: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        return _check_title(v)

    @field_validator("publish_year")
    @classmethod
    def year_in_range(cls, v):
        return _check_year(v)

    @field_validator("image_url")
    @classmethod
    def image_not_blank(cls, v):
        return _check_image(v)


class Movie(MovieBase, table=True):
    __tablename__ = "movies"
    # store-level guard for the per-owner duplicate rule
    __table_args__ = (
        UniqueConstraint("owner_id", "title", "publish_year", name="uq_movie_owner_title_year"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    title_search: str = Field(default="", index=True)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    owner: Optional[User] = Relationship()


class MovieRead(MovieBase):
    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime


class MovieQuery(SQLModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    search: Optional[str] = Field(default=None, max_length=200)


class MoviePage(SQLModel):
    items: List[MovieRead]
    total: int
    page: int
    limit: int
    total_pages: int
