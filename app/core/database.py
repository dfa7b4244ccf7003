"""
Database configuration and session management
SQLAlchemy engine, request-scoped sessions and table bootstrap
"""

import logging
import time
from contextlib import contextmanager
from typing import Generator, Iterator

import sentry_sdk
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings
from app.core.exceptions import StorageException

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()


def build_engine(database_url: str, **overrides) -> Engine:
    """Create an engine tuned for the backend behind ``database_url``"""
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
    else:
        options = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": settings.DB_POOL_PRE_PING,
        }
    options.update(overrides)
    return create_engine(database_url, echo=settings.DEBUG, **options)


engine = build_engine(settings.get_database_url())

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(bind: Engine = None) -> None:
    """Initialize database, create tables if they don't exist"""
    bind = bind or engine
    try:
        # Import all models here to ensure they're registered
        from app import models  # noqa: F401

        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created successfully")

        with bind.connect() as conn:
            if conn.execute(text("SELECT 1")).scalar() == 1:
                logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        if settings.SENTRY_DSN:
            sentry_sdk.capture_exception(e)
        raise


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session
    Ensures proper cleanup after request
    """
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Database error occurred: {e}")
        db.rollback()
        if settings.SENTRY_DSN:
            sentry_sdk.capture_exception(e)
        raise
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Commit the work done inside the block as one write

    Integrity violations are re-raised untouched so callers can map them to
    domain conflicts; every other store failure becomes a StorageException.
    """
    try:
        yield db
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database write failed: {e}")
        if settings.SENTRY_DSN:
            sentry_sdk.capture_exception(e)
        raise StorageException(details={"reason": str(e)}) from e


class DatabaseHealthCheck:
    """Database health check utility"""

    @staticmethod
    def check_connection(db: Session) -> dict:
        """Check database connection health"""
        start_time = time.time()
        try:
            db.execute(text("SELECT 1"))
            return {"status": "healthy", "response_time": time.time() - start_time}
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e),
                "response_time": time.time() - start_time,
            }
