"""
Database configuration, connection management and units of work
"""
import re
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from itam.core.config import settings
from itam.core.exceptions import (
    DependencyUnavailable,
    ITAMError,
    StoreTimeout,
    UniqueConstraintConflict,
    ValidationFailed,
)
from itam.core.logging import get_logger
from itam.core.metrics import record_store_error

logger = get_logger(__name__)

_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (.+)")
_PG_UNIQUE_VIOLATION = "23505"
_PG_QUERY_CANCELED = "57014"


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create a pooled engine with bounded acquire, idle and connect timeouts"""
    if url.startswith("sqlite"):
        # Local development and tests; the file lock serialises writers
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 15},
        )

    connect_args = {"connect_timeout": settings.DATABASE_CONNECT_TIMEOUT_SECONDS}
    if url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={settings.DATABASE_STATEMENT_TIMEOUT_MS}"

    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT_SECONDS,
        pool_recycle=settings.DATABASE_POOL_RECYCLE_SECONDS,
        connect_args=connect_args,
    )


def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = create_session_factory(engine)

Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def translate_db_error(exc: Exception) -> Optional[ITAMError]:
    """Map a driver error onto the registry taxonomy, or None to let it propagate."""
    if isinstance(exc, ITAMError):
        return exc

    if isinstance(exc, PoolTimeoutError):
        record_store_error("pool_exhausted")
        return DependencyUnavailable("Database connection pool exhausted")

    if isinstance(exc, IntegrityError):
        return _unique_conflict(exc)

    if isinstance(exc, DataError):
        # Value out of range or too long for its column
        return ValidationFailed.single("value", "invalid_value", "A value does not fit the stored column")

    if isinstance(exc, OperationalError) or (
        isinstance(exc, DBAPIError) and exc.connection_invalidated
    ):
        if _is_statement_timeout(exc):
            record_store_error("timeout")
            return StoreTimeout("Database statement timed out")
        record_store_error("unavailable")
        return DependencyUnavailable("Database unavailable")

    return None


def _unique_conflict(exc: IntegrityError) -> Optional[UniqueConstraintConflict]:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _PG_UNIQUE_VIOLATION:
        diag = getattr(orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None)
        return UniqueConstraintConflict(constraint=constraint, detail=str(orig).strip())

    match = _SQLITE_UNIQUE.search(str(orig))
    if match:
        columns = [column.strip() for column in match.group(1).split(",")]
        return UniqueConstraintConflict(columns=columns, detail=str(orig).strip())
    return None


def _is_statement_timeout(exc: DBAPIError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _PG_QUERY_CANCELED:
        return True
    message = str(orig).lower()
    return "statement timeout" in message or "database is locked" in message


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back and translate store errors on failure"""
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        translated = translate_db_error(exc)
        if translated is None:
            raise
        raise translated from exc
    except BaseException:
        db.rollback()
        raise


async def init_db():
    """Create tables and lock tenants that predate the admin lock"""
    try:
        # Import all models to ensure they're registered
        import itam.models  # noqa: F401
        from itam.services.first_admin_lock import FirstAdminLock

        Base.metadata.create_all(bind=engine)

        with SessionLocal() as db:
            report = FirstAdminLock(db).backfill()
        logger.info(
            f"Admin lock backfill: created={report.created} "
            f"already_locked={report.already_locked} failed={report.failed}"
        )
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
