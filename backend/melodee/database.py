"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from melodee.config import settings


def engine_options(database_url: str) -> dict:
    """Engine keyword arguments for the given database type."""
    if database_url.startswith("sqlite"):
        # SQLite: no pool settings needed
        return {
            "connect_args": {"check_same_thread": False}
        }
    # PostgreSQL: full connection pool
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20
    }


def make_session_factory(database_url: str) -> sessionmaker:
    """Build a session factory for an explicit database URL.

    Used by the CLI tools when a database is passed on the command line
    instead of taken from settings.
    """
    bind = create_engine(database_url, **engine_options(database_url))
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
