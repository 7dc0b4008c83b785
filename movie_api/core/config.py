# movie_api/core/config.py
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# project root, one level above the movie_api package
PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # required, there is no built-in fallback secret
    SECRET_KEY: str
    DATABASE_URL: str = "sqlite:///./movies.db"

    # JWT logic
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    BCRYPT_ROUNDS: int = 10

    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",          # Vite dev server
        "http://localhost:5174",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    # where uploaded images go: "local" disk or an "s3" bucket
    STORAGE_BACKEND: Literal["local", "s3"] = "local"
    IMAGES_DIR: str = "public/images"
    # older deployments kept images in other folders; deletion looks there too
    LEGACY_IMAGE_DIRS: List[str] = []

    AWS_REGION: str = "us-east-1"
    AWS_S3_BUCKET_NAME: Optional[str] = None
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None  # MinIO and other S3-compatible stores

    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5 MiB
    ALLOWED_IMAGE_TYPES: List[str] = [
        "image/jpg",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    MIN_PAGE_LIMIT: int = 10

    # load from project-root .env and ignore everything else in it
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def image_search_dirs(self) -> List[Path]:
        """
        Ordered, de-duplicated list of directories that may hold a locally
        stored image. The configured IMAGES_DIR always comes first.
        """
        candidates = [
            Path(self.IMAGES_DIR),
            *(Path(d) for d in self.LEGACY_IMAGE_DIRS),
            Path.cwd() / "public" / "images",
            PROJECT_ROOT / "public" / "images",
        ]
        seen = set()
        ordered = []
        for candidate in candidates:
            resolved = candidate.expanduser().resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            ordered.append(resolved)
        return ordered


@lru_cache
def get_settings() -> Settings:
    """Resolve settings once per process."""
    return Settings()
