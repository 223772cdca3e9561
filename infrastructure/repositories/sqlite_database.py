"""SQLite store handle shared by every repository."""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from domain.errors import StoreFailure
from domain.interfaces import TransactionManager

logger = logging.getLogger(__name__)


class SqliteDatabase(TransactionManager):
    """Opens connections with foreign keys enforced and tracks the active transaction per thread.

    Repositories call :meth:`connection`; when a caller has opened
    :meth:`transaction` on the same thread, they join it instead of
    committing on their own.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._local = threading.local()

    @property
    def path(self) -> Path:
        return self._db_path

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        active = getattr(self._local, "conn", None)
        if active is not None:
            yield active
            return

        try:
            conn = self._open()
        except sqlite3.Error as exc:
            raise StoreFailure(f"Cannot open database {self._db_path}: {exc}") from exc
        self._local.conn = conn
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreFailure(str(exc)) from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()

    def connection(self) -> Iterator[sqlite3.Connection]:
        return self.transaction()


def connect_store(db_path: str | Path) -> SqliteDatabase:
    """Open the database once at startup and fail fast if it is unusable."""
    path = Path(db_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StoreFailure(f"Cannot create database directory {path.parent}: {exc}") from exc
    database = SqliteDatabase(path)
    with database.transaction() as conn:
        conn.execute("SELECT 1").fetchone()
    logger.info("Connected to SQLite store %s", path)
    return database


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


__all__ = ["SqliteDatabase", "connect_store", "to_iso", "from_iso"]
