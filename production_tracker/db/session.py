from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker

from production_tracker.core.config import get_settings


logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent.parent
_settings = get_settings()


def _normalise_database_url(raw_url: str) -> str:
    url = make_url(raw_url)
    drivername = url.drivername
    if drivername.startswith("sqlite+"):
        url = url.set(drivername="sqlite")
    elif "+" in drivername and drivername.startswith("postgresql+"):
        url = url.set(drivername="postgresql")
    return url.render_as_string(hide_password=False)


def _sqlite_connect_args(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {}
    connect_args: Dict[str, Any] = {"check_same_thread": False}
    db_path = make_url(url).database
    if db_path and db_path != ":memory:":
        path = Path(db_path)
        if not path.is_absolute():
            path = (BASE_DIR / db_path).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
    return connect_args


SYNC_DATABASE_URL = _normalise_database_url(_settings.db_url)
_connect_args = _sqlite_connect_args(SYNC_DATABASE_URL)
engine: Engine = create_engine(SYNC_DATABASE_URL, connect_args=_connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    from production_tracker.db.base import Base

    Base.metadata.create_all(engine)
    logger.info("Database tables ensured")


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = ["engine", "SessionLocal", "init_db", "get_db"]
