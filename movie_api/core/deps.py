# movie_api/core/deps.py
from fastapi import Request

from movie_api.core.config import Settings
from movie_api.repositories.blob_store import BlobStore
from movie_api.services.image_service import ImageCleaner

# Components are built once in create_app() and kept on app.state.


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_image_cleaner(request: Request) -> ImageCleaner:
    return request.app.state.images
