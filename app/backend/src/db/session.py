"""SQLAlchemy engine and session factory configuration."""

from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

LOGGER = structlog.get_logger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[4]


def normalize_database_url(raw_url: str) -> URL:
    """Return an absolute :class:`~sqlalchemy.engine.URL` for SQLite databases.

    Supabase hands out ``postgres://`` URLs, which SQLAlchemy no longer accepts,
    so those are rewritten to ``postgresql://`` as well.
    """

    if raw_url.startswith("postgres://"):
        raw_url = "postgresql://" + raw_url[len("postgres://") :]

    url = make_url(raw_url)
    if not url.drivername.startswith("sqlite"):
        return url

    database = url.database or ""
    if database in {"", ":memory:"}:
        return url

    db_path = Path(database)
    if db_path.is_absolute():
        resolved = db_path
    else:
        resolved = PROJECT_ROOT / db_path

    resolved = resolved.resolve()
    if resolved != db_path:
        LOGGER.info(
            "database_path_normalized",
            original=str(db_path),
            resolved=str(resolved),
        )

    return url.set(database=str(resolved))


def build_engine(raw_url: str) -> Engine:
    """Create an engine suited to the configured backend."""

    url = normalize_database_url(raw_url)
    if url.drivername.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if (url.database or "") in {"", ":memory:"}:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, future=True, **kwargs)
    else:
        engine = create_engine(url, pool_pre_ping=True, future=True)

    LOGGER.info("database_engine_initialized", url=url.render_as_string(hide_password=True))
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return the session factory bound to ``engine``."""

    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


__all__ = ["build_engine", "build_session_factory", "normalize_database_url"]
