import logging
from typing import Callable

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

AFTER_COMMIT = "after_commit"
AFTER_ROLLBACK = "after_rollback"


def after_commit(db: Session, func: Callable, *args, **kwargs) -> None:
    """Queue ``func`` to run once the request transaction has committed. Dropped on rollback."""
    db.info.setdefault(AFTER_COMMIT, []).append((func, args, kwargs))


def after_rollback(db: Session, func: Callable, *args, **kwargs) -> None:
    """Queue ``func`` to run if the request transaction is rolled back. Dropped on commit."""
    db.info.setdefault(AFTER_ROLLBACK, []).append((func, args, kwargs))


def _run_queued(db: Session, run_key: str, drop_key: str) -> None:
    callbacks = db.info.pop(run_key, [])
    db.info.pop(drop_key, None)
    for func, args, kwargs in callbacks:
        try:
            func(*args, **kwargs)
        except Exception as e:
            # The transaction outcome is final; a failed side effect is only reported
            logger.error(f"{run_key} callback {getattr(func, '__name__', func)!s} failed: {e}")


def commit_session(db: Session) -> None:
    db.commit()
    _run_queued(db, AFTER_COMMIT, AFTER_ROLLBACK)


def rollback_session(db: Session) -> None:
    db.rollback()
    _run_queued(db, AFTER_ROLLBACK, AFTER_COMMIT)
