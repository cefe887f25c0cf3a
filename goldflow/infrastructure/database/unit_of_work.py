"""
Unit of Work implementation for the tracking store.

Each workflow operation runs inside one unit of work: one session, one
transaction, committed on success and rolled back on any exception.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from goldflow.core.config import Settings, get_settings
from . import models  # noqa: F401  registers tables on SQLModel.metadata
from .errors import DatabaseError
from .tracking_store import SqlTrackingStore


def create_db_engine(database_url: str | None = None, settings: Settings | None = None) -> Engine:
    """Build an engine for the configured database URL."""
    settings = settings or get_settings()
    url = database_url or settings.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in {"sqlite://", "sqlite:///"}:
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=settings.DATABASE_ECHO, **kwargs)
    return create_engine(url, echo=settings.DATABASE_ECHO, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    SQLModel.metadata.create_all(engine)


class SqlModelUnitOfWork:
    """One session and transaction, exposed to domain services as a SqlTrackingStore."""

    store: SqlTrackingStore

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> "SqlModelUnitOfWork":
        self._session = self._session_factory()
        self.store = SqlTrackingStore(self._session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()
        finally:
            if self._session:
                self._session.close()
                self._session = None

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            DatabaseError: If commit fails
        """
        if not self._session:
            raise DatabaseError("No active session to commit")

        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise DatabaseError(f"Failed to commit transaction: {str(e)}") from e

    def rollback(self) -> None:
        if not self._session:
            raise DatabaseError("No active session to rollback")

        try:
            self._session.rollback()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to rollback transaction: {str(e)}") from e


class UnitOfWorkManager:
    """Creates units of work bound to one engine."""

    def __init__(self, engine: Engine | None = None):
        self._engine = engine or create_db_engine()

    def _new_session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    @contextmanager
    def transaction(self) -> Iterator[SqlModelUnitOfWork]:
        """
        Run a block in one transaction.

            with uow_manager.transaction() as uow:
                tracking = uow.store.get_tracking(order_id, department)
        """
        with SqlModelUnitOfWork(self._new_session) as uow:
            yield uow
