import math
from typing import Any, Dict, List, Optional
from sqlalchemy import func, or_
from sqlmodel import Session, select
from movie_api.models.movie import Movie, MovieCreate, search_key
from movie_api.models.user import utc_now

# Every query below conjoins owner_id into its filter. A movie owned by
# someone else is therefore indistinguishable from one that does not exist.


def _search_condition(search: str):
    term = search.strip()
    # title_search holds the casefolded title
    conditions = [Movie.title_search.contains(search_key(term), autoescape=True)]
    year = parse_year(term)
    if year is not None:
        conditions.append(Movie.publish_year == year)
    return or_(*conditions)


def parse_year(term: str) -> Optional[int]:
    """
    Interpret a search term as a publish year, if it is a whole number.
    """
    try:
        value = float(term)
    except ValueError:
        return None
    if not math.isfinite(value) or not value.is_integer() or abs(value) > 9999:
        return None
    return int(value)


def _owned(owner_id: int, search: Optional[str] = None) -> list:
    where = [Movie.owner_id == owner_id]
    if search and search.strip():
        where.append(_search_condition(search))
    return where


def find_movie(db: Session, movie_id: int, owner_id: int) -> Optional[Movie]:
    stmt = select(Movie).where(Movie.id == movie_id, Movie.owner_id == owner_id)
    return db.exec(stmt).first()


def find_duplicate(
    db: Session,
    owner_id: int,
    title: str,
    publish_year: int,
    exclude_id: Optional[int] = None,
) -> Optional[Movie]:
    stmt = select(Movie).where(
        Movie.owner_id == owner_id,
        Movie.title == title,
        Movie.publish_year == publish_year,
    )
    if exclude_id is not None:
        stmt = stmt.where(Movie.id != exclude_id)
    return db.exec(stmt).first()


def list_movies(
    db: Session, owner_id: int, search: Optional[str], skip: int, limit: int
) -> List[Movie]:
    stmt = (
        select(Movie)
        .where(*_owned(owner_id, search))
        .order_by(Movie.created_at.desc(), Movie.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(db.exec(stmt).all())


def count_movies(db: Session, owner_id: int, search: Optional[str] = None) -> int:
    stmt = select(func.count()).select_from(Movie).where(*_owned(owner_id, search))
    return db.exec(stmt).one()


def create_movie(db: Session, owner_id: int, movie_in: MovieCreate) -> Movie:
    movie = Movie(
        **movie_in.model_dump(),
        owner_id=owner_id,
        title_search=search_key(movie_in.title),
    )
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


def update_movie(
    db: Session, movie_id: int, owner_id: int, changes: Dict[str, Any]
) -> Optional[Movie]:
    movie = find_movie(db, movie_id, owner_id)
    if not movie:
        return None
    for field, value in changes.items():
        setattr(movie, field, value)
    if "title" in changes:
        movie.title_search = search_key(changes["title"])
    movie.updated_at = utc_now()
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


def delete_movie(db: Session, movie_id: int, owner_id: int) -> bool:
    movie = find_movie(db, movie_id, owner_id)
    if not movie:
        return False
    db.delete(movie)
    db.commit()
    return True
