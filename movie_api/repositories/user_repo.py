from typing import Optional
from sqlalchemy import or_
from sqlmodel import Session, select
from movie_api.models.user import User, UserCreate


def find_user_by_identity(
    db: Session, email: Optional[str] = None, username: Optional[str] = None
) -> Optional[User]:
    """
    Return the first user matching any of the given identity fields.
    """
    conditions = []
    if email:
        conditions.append(User.email == email)
    if username:
        conditions.append(User.username == username)
    if not conditions:
        return None
    stmt = select(User).where(or_(*conditions))
    return db.exec(stmt).first()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def create_user(db: Session, user: UserCreate, hashed_password: str) -> User:
    db_user = User(
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        hashed_password=hashed_password
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
