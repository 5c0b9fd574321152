from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from gc_onboarding.config.settings import settings

# Lazy initialization to avoid import-time database connections
_engine = None
_SessionLocal = None


def _get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        logger.info(f"Initializing database engine: {settings.database_url}")

        connect_args = {}
        if "sqlite" in settings.database_url.lower():
            connect_args = {"check_same_thread": False}
        else:
            connect_args = {
                "connect_timeout": 10,
                "application_name": "gc-onboarding",
            }

        _engine = create_engine(
            settings.database_url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        logger.info("Database engine initialized")
    return _engine


def get_engine():
    """Get or create the database engine (public API)."""
    return _get_engine()


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
        logger.info("Database session factory initialized")
    return _SessionLocal


@contextmanager
def get_session(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    """Get database session context manager.

    Commits on clean exit, rolls back and re-raises on any exception. An
    explicit factory overrides the settings-bound one (tests bind an
    in-memory engine this way).
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        if session.in_transaction():
            session.commit()
            logger.debug("Database session committed successfully")
    except Exception as e:
        # Import here to avoid circular imports
        from gc_onboarding.checklist.errors import ChecklistError

        if isinstance(e, ChecklistError):
            logger.debug(f"{type(e).__name__} in session, rolling back (business logic error, not DB error)")
            session.rollback()
            raise
        logger.error(f"Database session error, rolling back: {type(e).__name__}: {e}")
        session.rollback()
        raise
    finally:
        session.close()
