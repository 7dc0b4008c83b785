import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from movie_api.repositories.user_repo import (
    find_user_by_identity,
    create_user as repo_create_user,
)
from movie_api.models.user import LoginResult, User, UserCreate, UserLogin, UserRead
from movie_api.core.errors import ConflictError, UnauthorizedError, ValidationError
from movie_api.core.security import (
    TokenIssuer,
    create_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

# same message whether the identity is unknown or the password is wrong
INVALID_CREDENTIALS = "Incorrect credentials"
IDENTITY_TAKEN = "User with this email or username already exists"


def register_user(db: Session, user_in: UserCreate, rounds: int = 10) -> UserRead:
    if not user_in.email and not user_in.username:
        raise ValidationError("Email or username is required")

    if find_user_by_identity(db, email=user_in.email, username=user_in.username):
        raise ConflictError(IDENTITY_TAKEN)

    hashed = hash_password(user_in.password, rounds=rounds)

    try:
        user = repo_create_user(db, user_in, hashed)
    except IntegrityError:
        db.rollback()
        raise ConflictError(IDENTITY_TAKEN)

    logger.info("Registered user %s", user.id)
    return UserRead.model_validate(user)


def authenticate_user(
    db: Session,
    password: str,
    email: Optional[str] = None,
    username: Optional[str] = None,
    rounds: int = 10,
) -> User:
    user = find_user_by_identity(db, email=email, username=username)
    if not user:
        # same bcrypt cost as a wrong password
        verify_password(password, dummy_password_hash(rounds))
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return user


def login_user(
    db: Session, credentials: UserLogin, tokens: TokenIssuer, rounds: int = 10
) -> LoginResult:
    user = authenticate_user(
        db,
        credentials.password,
        email=credentials.email,
        username=credentials.username,
        rounds=rounds,
    )
    token = create_access_token(tokens, user)
    logger.info("User %s logged in", user.id)
    return LoginResult(user=UserRead.model_validate(user), access_token=token)
