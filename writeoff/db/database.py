from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..utils.config import DATABASE_READ_URL, DATABASE_URL

# Create declarative base
Base = declarative_base()


def make_engine(url: str, **kwargs) -> Engine:
    """Create an engine, allowing SQLite connections to cross threads."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


# Primary database (privileged, read/write)
engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)

# Optional public/read-only source used as the user lookup fallback
read_engine: Optional[Engine] = make_engine(DATABASE_READ_URL) if DATABASE_READ_URL else None
ReadSessionLocal: Optional[sessionmaker] = (
    make_session_factory(read_engine) if read_engine is not None else None
)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create any missing tables."""
    # Register the models on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Iterator[Session]:
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
