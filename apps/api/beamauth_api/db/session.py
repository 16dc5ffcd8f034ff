"""Database session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from beamauth_api.settings import get_settings

settings = get_settings()

if settings.database_url_computed.startswith("sqlite"):
    engine = create_engine(
        settings.database_url_computed,
        connect_args={"check_same_thread": False},
    )
else:
    # Revocations depend on serializable isolation to detect two writers
    # cloning the same authorization version.
    engine = create_engine(
        settings.database_url_computed,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        isolation_level="SERIALIZABLE",
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# serialization_failure, deadlock_detected
RETRYABLE_PGCODES = ("40001", "40P01")


def is_serialization_failure(exc: Exception) -> bool:
    """Whether a driver error is a concurrent-write conflict the client may retry."""
    return getattr(getattr(exc, "orig", None), "pgcode", None) in RETRYABLE_PGCODES
