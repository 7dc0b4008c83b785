import logging
import math
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from movie_api.core.errors import ConflictError, NotFoundError
from movie_api.core.image_refs import upload_key
from movie_api.models.movie import (
    Movie,
    MovieCreate,
    MoviePage,
    MovieQuery,
    MovieRead,
    MovieUpdate,
)
from movie_api.repositories.movie_repo import (
    count_movies,
    create_movie as repo_create_movie,
    delete_movie as repo_delete_movie,
    find_duplicate,
    find_movie,
    list_movies as repo_list_movies,
    update_movie as repo_update_movie,
)
from movie_api.repositories.upload_repo import delete_upload, find_upload
from movie_api.services.image_service import DeletionOutcome, ImageCleaner

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Movie with this title and publish year already exists"
NOT_FOUND_MESSAGE = "Movie not found"


def _get_owned(db: Session, movie_id: int, owner_id: int) -> Movie:
    movie = find_movie(db, movie_id, owner_id)
    if not movie:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return movie


def _release_image(db: Session, images: ImageCleaner, ref: Optional[str], owner_id: int) -> None:
    # an image uploaded by another user is never removed on this user's behalf
    key = upload_key(ref)
    upload = find_upload(db, key) if key else None
    if upload and upload.owner_id != owner_id:
        logger.warning(
            "Image %s belongs to user %s, not deleting it for user %s",
            ref, upload.owner_id, owner_id,
        )
        return

    result = images.delete_image(ref)
    if upload and result.outcome in (DeletionOutcome.DELETED, DeletionOutcome.REMOTE_DELETED):
        delete_upload(db, key)


def create_movie(db: Session, owner_id: int, movie_in: MovieCreate) -> MovieRead:
    if find_duplicate(db, owner_id, movie_in.title, movie_in.publish_year):
        raise ConflictError(DUPLICATE_MESSAGE)

    try:
        movie = repo_create_movie(db, owner_id, movie_in)
    except IntegrityError:
        # lost a race with a concurrent insert; the unique constraint caught it
        db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)

    logger.info("User %s created movie %s", owner_id, movie.id)
    return MovieRead.model_validate(movie)


def list_movies(db: Session, owner_id: int, query: MovieQuery, min_limit: int = 10) -> MoviePage:
    limit = max(query.limit, min_limit)
    skip = (query.page - 1) * limit

    total = count_movies(db, owner_id, query.search)
    movies = repo_list_movies(db, owner_id, query.search, skip, limit)

    return MoviePage(
        items=[MovieRead.model_validate(m) for m in movies],
        total=total,
        page=query.page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def get_movie(db: Session, movie_id: int, owner_id: int) -> MovieRead:
    return MovieRead.model_validate(_get_owned(db, movie_id, owner_id))


def update_movie(
    db: Session,
    movie_id: int,
    owner_id: int,
    movie_in: MovieUpdate,
    images: ImageCleaner,
) -> MovieRead:
    # 1) ownership check folded into the lookup
    existing = _get_owned(db, movie_id, owner_id)
    changes = movie_in.model_dump(exclude_unset=True, exclude_none=True)

    # 2) a replaced image is removed right away, even if the update is rejected below
    new_image = changes.get("image_url")
    if new_image and new_image != existing.image_url:
        logger.info("Movie %s image changed from %s to %s", movie_id, existing.image_url, new_image)
        _release_image(db, images, existing.image_url, owner_id)

    # 3) duplicate check against the owner's other movies
    if "title" in changes or "publish_year" in changes:
        title = changes.get("title", existing.title)
        year = changes.get("publish_year", existing.publish_year)
        if find_duplicate(db, owner_id, title, year, exclude_id=movie_id):
            raise ConflictError(DUPLICATE_MESSAGE)

    # 4) write
    try:
        updated = repo_update_movie(db, movie_id, owner_id, changes)
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)
    if not updated:
        # deleted between the check and the write
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return MovieRead.model_validate(updated)


def remove_movie(db: Session, movie_id: int, owner_id: int, images: ImageCleaner) -> None:
    movie = _get_owned(db, movie_id, owner_id)
    image_url = movie.image_url

    if not repo_delete_movie(db, movie_id, owner_id):
        raise NotFoundError(NOT_FOUND_MESSAGE)
    logger.info("User %s deleted movie %s", owner_id, movie_id)

    _release_image(db, images, image_url, owner_id)
