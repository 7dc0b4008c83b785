# movie_api/database.py
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from movie_api.core.config import Settings


def build_engine(settings: Settings) -> Engine:
    url = settings.DATABASE_URL
    kwargs = {"echo": settings.SQL_ECHO}
    if url.startswith("sqlite"):
        # FastAPI serves sync routes from a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    """
    Create all tables that are defined via SQLModel subclasses.
    """
    # models must be imported so their tables are registered on the metadata
    import movie_api.models.user    # noqa: F401
    import movie_api.models.movie   # noqa: F401
    import movie_api.models.upload  # noqa: F401

    SQLModel.metadata.create_all(engine)


def ping(engine: Engine) -> bool:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


def get_db(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
