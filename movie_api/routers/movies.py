# movie_api/routers/movies.py
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlmodel import Session

from movie_api.database import get_db
from movie_api.core.config import Settings
from movie_api.core.deps import get_image_cleaner, get_settings_from_app
from movie_api.core.responses import ApiResponse, ok
from movie_api.core.security import get_current_user
from movie_api.models.movie import MovieCreate, MoviePage, MovieQuery, MovieRead, MovieUpdate
from movie_api.models.user import User
from movie_api.services.image_service import ImageCleaner
from movie_api.services.movie_service import (
    create_movie as svc_create_movie,
    get_movie,
    list_movies,
    remove_movie,
    update_movie as svc_update_movie,
)

router = APIRouter(prefix="/movies", tags=["movies"])


@router.post(
    "",
    response_model=ApiResponse[MovieRead],
    status_code=status.HTTP_201_CREATED,
)
def create_movie(
    movie_in: MovieCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create a movie owned by the authenticated user.
    409 if the user already has a movie with the same title and year.
    """
    movie = svc_create_movie(db, current_user.id, movie_in)
    return ok(request, movie, "Movie created successfully", status.HTTP_201_CREATED)


@router.get(
    "",
    response_model=ApiResponse[MoviePage],
    status_code=status.HTTP_200_OK,
    summary="List the current user's movies",
)
def list_my_movies(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    search: Optional[str] = Query(None, max_length=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    Paginated, newest first. ``search`` matches the title (case-insensitive)
    or, when numeric, the publish year.
    """
    query = MovieQuery(page=page, limit=limit, search=search)
    result = list_movies(db, current_user.id, query, min_limit=settings.MIN_PAGE_LIMIT)
    return ok(request, result, "Movies retrieved successfully")


@router.get(
    "/{movie_id}",
    response_model=ApiResponse[MovieRead],
    status_code=status.HTTP_200_OK,
)
def read_movie(
    request: Request,
    movie_id: int = Path(..., description="The ID of the movie to fetch"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    movie = get_movie(db, movie_id, current_user.id)
    return ok(request, movie, "Movie retrieved successfully")


@router.patch(
    "/{movie_id}",
    response_model=ApiResponse[MovieRead],
    status_code=status.HTTP_200_OK,
)
def update_movie(
    movie_in: MovieUpdate,
    request: Request,
    movie_id: int = Path(..., description="The ID of the movie to update"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    images: ImageCleaner = Depends(get_image_cleaner),
):
    movie = svc_update_movie(db, movie_id, current_user.id, movie_in, images)
    return ok(request, movie, "Movie updated successfully")


@router.delete(
    "/{movie_id}",
    response_model=ApiResponse[None],
    status_code=status.HTTP_200_OK,
    summary="Delete a movie",
)
def delete_movie(
    request: Request,
    movie_id: int = Path(..., description="The ID of the movie to delete"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    images: ImageCleaner = Depends(get_image_cleaner),
):
    """
    Delete a movie owned by the authenticated user, then its image.
    """
    remove_movie(db, movie_id, current_user.id, images)
    return ok(request, None, "Movie deleted successfully")
