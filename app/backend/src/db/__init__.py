"""Database client and session management utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from ..models.base import Base

from .session import build_engine, build_session_factory


class Database:
    """Owns the engine and session factory for one process.

    Built once by :func:`app.backend.src.main.create_app` and shared with every
    request through ``app.state.database``.
    """

    def __init__(self, url: str) -> None:
        self.engine: Engine = build_engine(url)
        self.session_factory = build_session_factory(self.engine)

    def create_all(self) -> None:
        """Create every table known to the ORM metadata."""

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Context manager yielding a SQLAlchemy session."""

        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope for scripts and tests."""

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's database client."""

    return request.app.state.database


def get_session_dependency(request: Request) -> Iterator[Session]:
    """FastAPI dependency wrapping :meth:`Database.get_session`."""

    with get_database(request).get_session() as session:
        yield session


__all__ = [
    "Base",
    "Database",
    "get_database",
    "get_session_dependency",
]
