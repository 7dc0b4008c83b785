# movie_api/core/security.py
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from movie_api.core.config import Settings
from movie_api.core.errors import UnauthorizedError
from movie_api.database import get_db
from movie_api.models.user import User
from movie_api.repositories.user_repo import get_user

# auto_error=False so a missing header goes through our own 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed hash or over-long password
        return False


@lru_cache(maxsize=None)
def dummy_password_hash(rounds: int = 10) -> str:
    """
    Hash of a random password. Checked when a login names no known user, so
    that the failure costs the same bcrypt work as a wrong password.
    """
    return hash_password(secrets.token_urlsafe(16), rounds=rounds)


class TokenIssuer:
    """
    Signs and verifies the access tokens handed out on login.
    The claims always carry the user id as ``sub``.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def sign(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {k: v for k, v in claims.items() if v is not None}
        payload["iat"] = now
        payload["exp"] = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired")
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid token")
        return claims


def create_access_token(tokens: TokenIssuer, user: User) -> str:
    return tokens.sign(
        {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
        }
    )


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.tokens


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise UnauthorizedError("Not authenticated")

    claims = tokens.verify(token)
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid token")

    user = get_user(db, user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return user
