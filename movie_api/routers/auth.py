# movie_api/routers/auth.py
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session
from movie_api.database import get_db
from movie_api.core.config import Settings
from movie_api.core.deps import get_settings_from_app
from movie_api.core.security import TokenIssuer, create_access_token, get_token_issuer
from movie_api.models.user import Token
from movie_api.services.user_service import authenticate_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    OAuth2 password flow, used by the interactive docs.
    """
    # allow login by username _or_ email
    user = authenticate_user(
        db,
        form_data.password,
        email=form_data.username.strip().lower(),
        username=form_data.username,
        rounds=settings.BCRYPT_ROUNDS,
    )
    token = create_access_token(tokens, user)
    return {"access_token": token, "token_type": "bearer"}
