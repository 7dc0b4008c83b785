# movie_api/models/user.py
from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from pydantic import EmailStr, field_validator, model_validator


def utc_now() -> datetime:
    # stored timestamps are always timezone-aware UTC
    return datetime.now(timezone.utc)


class UserBase(SQLModel):
    email: Optional[EmailStr] = Field(default=None, index=True, unique=True)
    username: Optional[str] = Field(default=None, index=True, unique=True, min_length=3, max_length=50)
    full_name: Optional[str] = Field(default=None, max_length=100)


def _normalize_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().lower()
    return v or None


class UserCreate(UserBase):
    password: str = Field(min_length=6, description="Plain-text password")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        # bcrypt only looks at the first 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password cannot exceed 72 bytes")
        return v

    @model_validator(mode="after")
    def require_identity(self):
        if not self.email and not self.username:
            raise ValueError("Email or username is required")
        return self


class UserLogin(SQLModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @model_validator(mode="after")
    def require_identity(self):
        if not self.email and not self.username:
            raise ValueError("Email or username is required")
        return self


class UserRead(UserBase):
    id: int
    created_at: datetime


class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


class LoginResult(SQLModel):
    user: UserRead
    access_token: str
    token_type: str = "bearer"


class User(UserBase, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    hashed_password: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utc_now)
