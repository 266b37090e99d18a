from __future__ import annotations
from collections.abc import Generator, Iterator
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config_loader import settings
from core.errors import ConflictError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
    connect_args=_connect_args,
    future=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# SQLSTATEs for serialization failure and deadlock on PostgreSQL
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


@contextmanager
def transaction(db: Session, *, conflict_detail: str) -> Iterator[Session]:
    """One operation, one commit.

    Everything staged inside the block commits together or not at all. A
    uniqueness violation or a serialization failure reported by the store is
    surfaced as ConflictError(conflict_detail); anything else is re-raised
    after the rollback.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(conflict_detail) from exc
    except OperationalError as exc:
        db.rollback()
        if getattr(exc.orig, "sqlstate", None) in _RETRYABLE_SQLSTATES:
            raise ConflictError(conflict_detail) from exc
        logger.exception("storage_failure")
        raise
    except BaseException:
        db.rollback()
        raise
