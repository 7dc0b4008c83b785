import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from movie_api.core.config import Settings, get_settings
from movie_api.core.errors import register_exception_handlers
from movie_api.core.logging_config import configure_logging
from movie_api.core.security import TokenIssuer
from movie_api.database import build_engine, init_db
from movie_api.repositories.blob_store import LocalBlobStore, S3BlobStore, build_blob_store
from movie_api.routers.auth import router as auth_router
from movie_api.routers.health import router as health_router
from movie_api.routers.movies import router as movies_router
from movie_api.routers.upload import router as upload_router
from movie_api.routers.users import router as users_router
from movie_api.services.image_service import ImageCleaner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.engine)
    logger.info("Movie catalog API ready (storage backend: %s)", app.state.settings.STORAGE_BACKEND)
    yield
    app.state.engine.dispose()
    logger.info("Shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application from one Settings instance. Every component
    (engine, blob store, image cleaner, token issuer) is created here.

    Run with ``uvicorn movie_api.main:create_app --factory``.
    """
    if settings is None:
        # project-root .env, also read by boto3 for the AWS_* credentials
        load_dotenv()
        settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Movie Catalog API",
        version="0.1.0",
        lifespan=lifespan,
    )

    blob_store = build_blob_store(settings)
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.blob_store = blob_store
    app.state.images = ImageCleaner(
        settings.image_search_dirs(),
        remote=blob_store if isinstance(blob_store, S3BlobStore) else None,
    )
    app.state.tokens = TokenIssuer.from_settings(settings)

    # Allow requests coming from the front-end origin(s)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(auth_router)
    app.include_router(movies_router)
    app.include_router(upload_router)

    # locally stored uploads are served straight from disk
    if isinstance(blob_store, LocalBlobStore):
        app.mount(blob_store.url_prefix, StaticFiles(directory=blob_store.root), name="images")

    return app
