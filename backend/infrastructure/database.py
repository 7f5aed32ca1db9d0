"""SQLModel database configuration."""
from __future__ import annotations

from pathlib import Path
from typing import Union

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "karaoke.db"


def build_engine(db_path: Union[str, Path, None] = None) -> Engine:
    """Create a SQLite engine; relative paths resolve against the backend directory."""
    path = Path(db_path) if db_path else DEFAULT_DB_PATH
    if not path.is_absolute():
        path = DEFAULT_DB_PATH.parent / path
    return create_engine(
        f"sqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(engine: Engine) -> None:
    """Create tables if they do not exist."""
    from . import models  # noqa: F401  # ensure SQLModel metadata is loaded

    SQLModel.metadata.create_all(engine)


def session_factory(engine: Engine):
    def SessionLocal() -> Session:
        return Session(engine)

    return SessionLocal
