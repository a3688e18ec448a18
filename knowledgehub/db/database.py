"""
SQLite database setup for KnowledgeHub.
"""

import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Database path - configurable via environment variable
DB_PATH = os.getenv("KH_DB_PATH", str(Path(__file__).parent.parent.parent / "data" / "knowledgehub.db"))

# SQLite URL
SQLALCHEMY_DATABASE_URL = f"sqlite:///{DB_PATH}"


def create_db_engine(url: str = SQLALCHEMY_DATABASE_URL):
    """Create an engine with foreign keys enforced on every connection.

    An in-memory URL ("sqlite://") gets a single shared connection so every
    session sees the same database.
    """
    kwargs = {"connect_args": {"check_same_thread": False}}  # Needed for SQLite
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        # Ensure data directory exists
        Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)

    new_engine = create_engine(url, **kwargs)

    # Enable foreign keys for SQLite
    @event.listens_for(new_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return new_engine


# Create engine
engine = create_db_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database tables. Safe to call on every start."""
    from knowledgehub.db import models  # noqa: F401 - Import models to register them
    Base.metadata.create_all(bind=bind or engine)
