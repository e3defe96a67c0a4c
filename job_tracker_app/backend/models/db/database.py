from datetime import timezone
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import DateTime, TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """
    Timestamp column that always hands back aware UTC datetimes.

    SQLite drops the offset on write, so values are normalized to UTC going
    in and naive values coming out are tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def build_engine(settings) -> Engine:
    """Create the SQLAlchemy engine described by the given settings."""
    url = settings.get_database_url()
    kwargs = {"echo": settings.database_echo, "future": True}
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            # Every session must see the same in-memory database
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, class_=Session)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency: yields a session from the factory the app was built with.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
