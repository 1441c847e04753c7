# infra/db/base.py
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from infra.path import default_db_path

logger = logging.getLogger(__name__)

Base = declarative_base()


def default_db_url() -> str:
    db_path: Path = default_db_path()
    # Make sure parent directory exists (should already be created in default_db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path.as_posix()}"


def build_engine(db_url: str | None = None, *, echo: bool = False) -> Engine:
    url = db_url or default_db_url()
    connect_args: dict = {}
    if url.startswith("sqlite"):
        # Allocation requests may arrive from worker threads.
        connect_args = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(url, echo=echo, future=True, connect_args=connect_args)
    logger.info("Using database at: %s", engine.url.render_as_string(hide_password=True))
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


__all__ = ["Base", "default_db_url", "build_engine", "build_session_factory"]
