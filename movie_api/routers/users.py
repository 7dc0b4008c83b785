from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session
from movie_api.services.user_service import register_user, login_user
from movie_api.models.user import LoginResult, User, UserCreate, UserLogin, UserRead
from movie_api.database import get_db
from movie_api.core.config import Settings
from movie_api.core.responses import ApiResponse, ok
from movie_api.core.security import TokenIssuer, get_current_user, get_token_issuer
from movie_api.core.deps import get_settings_from_app


router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/register",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    user_in: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    Register a new user.
    - Requires an email or a username
    - Validates email/username uniqueness
    - Hashes password
    """
    user = register_user(db, user_in, rounds=settings.BCRYPT_ROUNDS)
    return ok(request, user, "User registered successfully", status.HTTP_201_CREATED)


@router.post(
    "/login",
    response_model=ApiResponse[LoginResult],
    status_code=status.HTTP_200_OK,
)
def login(
    credentials: UserLogin,
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings_from_app),
):
    result = login_user(db, credentials, tokens, rounds=settings.BCRYPT_ROUNDS)
    return ok(request, result, "Login successful")


@router.get(
    "/me",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_200_OK,
)
def read_current_user(
    request: Request,
    current_user: User = Depends(get_current_user),
):
    return ok(request, UserRead.model_validate(current_user), "User retrieved successfully")
