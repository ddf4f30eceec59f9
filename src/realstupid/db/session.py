"""Database store handle.

The process entry point builds one :class:`Store` and hands it to the
services that need it; there is no module-level engine.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from realstupid.core.errors import ConflictFailed, StorageFailed

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import realstupid.models  # noqa: E402,F401


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Transactional access to the relational store."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> Store:
        """Build a store with its own engine for the given database URL."""
        connect_args: dict[str, Any] = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine = create_engine(
            url,
            pool_pre_ping=True,
            echo=echo,
            connect_args=connect_args,
        )
        return cls(engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session for read paths; nothing is committed."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            logger.warning("Read against the store failed: %s", exc)
            raise StorageFailed("Could not read from the store") from exc
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session inside one transaction.

        The transaction commits when the block exits normally and rolls back
        on any exception. Driver errors surface as ``ConflictFailed`` for
        constraint violations and ``StorageFailed`` otherwise.
        """
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        except IntegrityError as exc:
            logger.info("Transaction rolled back on constraint violation: %s", exc.orig)
            raise ConflictFailed("A conflicting record already exists") from exc
        except SQLAlchemyError as exc:
            logger.warning("Transaction rolled back: %s", exc)
            raise StorageFailed("The store could not commit the transaction") from exc
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
