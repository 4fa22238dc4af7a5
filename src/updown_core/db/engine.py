"""Process-wide SQLAlchemy engine for the ledger database."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None

_NOT_INITIALISED = "Ledger database not initialised; call init_engine() first"


def normalise_url(url: str) -> str:
    """Point bare ``postgresql://`` URLs at the psycopg 3 driver."""
    scheme, sep, rest = url.partition("://")
    if sep and scheme in ("postgresql", "postgres"):
        return f"postgresql+psycopg://{rest}"
    return url


def init_engine(url: str, **kwargs) -> Engine:
    """Create the engine and session factory used by the event sink and API.

    Connections are checked before use since the engine idles between
    trades for long stretches.
    """
    global _engine, _SessionLocal
    kwargs.setdefault("pool_pre_ping", True)
    _engine = create_engine(normalise_url(url), **kwargs)
    _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def dispose_engine() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """Yield a session and close it afterwards. Used as a FastAPI dependency."""
    if _SessionLocal is None:
        raise RuntimeError(_NOT_INITIALISED)
    with _SessionLocal() as session:
        yield session


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error."""
    if _SessionLocal is None:
        raise RuntimeError(_NOT_INITIALISED)
    with _SessionLocal() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
