"""SQLAlchemy-backed unit of work for the import pipeline."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shelfie.adapters.sqlalchemy.mappings import start_mappers
from shelfie.adapters.sqlalchemy.migrations import upgrade_head
from shelfie.adapters.sqlalchemy.repositories import (
    SqlAlchemyImportBatchRepository,
    SqlAlchemyImportRecordRepository,
    SqlAlchemyItemSearchRepository,
    SqlAlchemyLibraryItemRepository,
)
from shelfie.config import get_database_config
from shelfie.domain.errors import StorageError
from shelfie.domain.ports.unit_of_work import ImportRepositories, RepositoryCollection

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection
    from types import TracebackType

    from sqlalchemy.engine import Engine
    from sqlalchemy.pool import ConnectionPoolEntry

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call shelfie.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    enable_sqlite_foreign_keys(resolved_engine)
    start_mappers()
    upgrade_head(engine=resolved_engine)

    _STATE.engine = resolved_engine
    log.info("SQLAlchemy adapter started on %s", resolved_engine.url.render_as_string())


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for SQLite connections so batch deletes cascade."""

    if engine.dialect.name != "sqlite":
        return
    if event.contains(engine, "connect", _set_sqlite_pragma):
        return
    event.listen(engine, "connect", _set_sqlite_pragma)


def _set_sqlite_pragma(dbapi_connection: SQLiteConnection, _record: ConnectionPoolEntry) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Commit rejected by the database: {exc.__class__.__name__}") from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyImportUnitOfWork(BaseSqlAlchemyUnitOfWork[ImportRepositories]):
    """Unit of work for running and reporting on imports."""

    def _build_repositories(self, session: Session) -> ImportRepositories:
        return ImportRepositories(
            batches=SqlAlchemyImportBatchRepository(session),
            records=SqlAlchemyImportRecordRepository(session),
            items=SqlAlchemyLibraryItemRepository(session),
            search=SqlAlchemyItemSearchRepository(session),
        )


if TYPE_CHECKING:
    from shelfie.domain.ports.unit_of_work import ImportUnitOfWork

    _uow_import_check: ImportUnitOfWork = SqlAlchemyImportUnitOfWork()
