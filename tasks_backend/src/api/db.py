from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generator, List, Mapping, Optional

from .errors import ConflictError, StorageError
from .models import TaskEntity, UserEntity
from .repositories import TaskRepository, UserRepository, checked_task_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    email: str = "email"
    password_hash: str = "password_hash"
    image: str = "image"


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    user_id: str = "user_id"
    title: str = "title"
    date: str = "date"
    is_checked: str = "is_checked"


_USERS = _UserCols()
_TASKS = _TaskCols()


# Largest value an sqlite INTEGER column can hold.
SQLITE_MAX_INTEGER = 2**63 - 1


def _storable_id(row_id: int) -> bool:
    return -SQLITE_MAX_INTEGER - 1 <= row_id <= SQLITE_MAX_INTEGER


def _lower(value: Optional[str]) -> Optional[str]:
    # SQLite's own lower() only folds ASCII.
    return value.lower() if value is not None else None


class SQLiteDatabase:
    """
    Owns the sqlite file and schema. Every operation opens its own connection
    and commits once, so each row write is atomic on its own.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            logger.error("Could not open sqlite database %s: %s", self._db_path, exc)
            raise StorageError("Storage failure") from exc
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        conn.create_function("py_lower", 1, _lower, deterministic=True)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("sqlite operation failed: %s: %s", type(exc).__name__, exc)
            raise StorageError("Storage failure") from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self.connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_USERS.table} (
                    {_USERS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_USERS.email} TEXT NOT NULL UNIQUE,
                    {_USERS.password_hash} TEXT NOT NULL,
                    {_USERS.image} TEXT NOT NULL DEFAULT ''
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_TASKS.table} (
                    {_TASKS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_TASKS.user_id} INTEGER NOT NULL REFERENCES {_USERS.table}({_USERS.id}),
                    {_TASKS.title} TEXT NOT NULL,
                    {_TASKS.date} TEXT NOT NULL,
                    {_TASKS.is_checked} INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_TASKS.table}_{_TASKS.user_id} "
                f"ON {_TASKS.table}({_TASKS.user_id})"
            )


class SQLiteUserRepository(UserRepository):
    """SQLite-backed credential store; email uniqueness is a table constraint."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    @staticmethod
    def _row_to_entity(row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row[_USERS.id]),
            "email": str(row[_USERS.email]),
            "password_hash": str(row[_USERS.password_hash]),
            "image": str(row[_USERS.image] or ""),
        }

    def _fetch(self, conn: sqlite3.Connection, user_id: int) -> Optional[UserEntity]:
        if not _storable_id(user_id):
            return None
        row = conn.execute(
            f"SELECT * FROM {_USERS.table} WHERE {_USERS.id} = ?", (user_id,)
        ).fetchone()
        return self._row_to_entity(row) if row else None

    def get(self, user_id: int) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            return self._fetch(conn, user_id)

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {_USERS.table} WHERE {_USERS.email} = ?", (email,)
            ).fetchone()
            return self._row_to_entity(row) if row else None

    def create(self, email: str, password_hash: str, image: str = "") -> UserEntity:
        with self._db.connect() as conn:
            try:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_USERS.table} ({_USERS.email}, {_USERS.password_hash}, {_USERS.image})
                    VALUES (?, ?, ?)
                    """,
                    (email, password_hash, image),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("User exists") from exc
            created = self._fetch(conn, int(cur.lastrowid))
            if created is None:
                raise StorageError("Storage failure")
            return created

    def update_image(self, user_id: int, image: str) -> Optional[UserEntity]:
        if not _storable_id(user_id):
            return None
        with self._db.connect() as conn:
            cur = conn.execute(
                f"UPDATE {_USERS.table} SET {_USERS.image} = ? WHERE {_USERS.id} = ?",
                (image, user_id),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch(conn, user_id)


class SQLiteTaskRepository(TaskRepository):
    """SQLite-backed task store."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    @staticmethod
    def _row_to_entity(row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_TASKS.id]),
            "user_id": int(row[_TASKS.user_id]),
            "title": str(row[_TASKS.title]),
            "date": str(row[_TASKS.date]),
            "is_checked": bool(row[_TASKS.is_checked]),
        }

    def _fetch(self, conn: sqlite3.Connection, task_id: int) -> Optional[TaskEntity]:
        if not _storable_id(task_id):
            return None
        row = conn.execute(
            f"SELECT * FROM {_TASKS.table} WHERE {_TASKS.id} = ?", (task_id,)
        ).fetchone()
        return self._row_to_entity(row) if row else None

    def create(self, user_id: int, title: str, date: str, is_checked: bool) -> TaskEntity:
        with self._db.connect() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_TASKS.table} ({_TASKS.user_id}, {_TASKS.title}, {_TASKS.date}, {_TASKS.is_checked})
                VALUES (?, ?, ?, ?)
                """,
                (user_id, title, date, 1 if is_checked else 0),
            )
            created = self._fetch(conn, int(cur.lastrowid))
            if created is None:
                raise StorageError("Storage failure")
            return created

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._db.connect() as conn:
            return self._fetch(conn, task_id)

    def update(self, task_id: int, fields: Mapping[str, Any]) -> Optional[TaskEntity]:
        changes = checked_task_fields(fields)
        if not _storable_id(task_id):
            return None
        with self._db.connect() as conn:
            if not changes:
                return self._fetch(conn, task_id)
            # Column names come from the UPDATABLE_TASK_FIELDS whitelist.
            assignments = ", ".join(f"{name} = ?" for name in changes)
            params: List[Any] = [
                (1 if value else 0) if name == _TASKS.is_checked else value
                for name, value in changes.items()
            ]
            cur = conn.execute(
                f"UPDATE {_TASKS.table} SET {assignments} WHERE {_TASKS.id} = ?",
                [*params, task_id],
            )
            if cur.rowcount == 0:
                return None
            return self._fetch(conn, task_id)

    def list(
        self,
        user_id: int,
        date: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TaskEntity]:
        if not _storable_id(user_id):
            return []
        clauses = [f"{_TASKS.user_id} = ?"]
        params: List[Any] = [user_id]

        if date:
            clauses.append(f"{_TASKS.date} = ?")
            params.append(date)

        if search:
            clauses.append(f"instr(py_lower({_TASKS.title}), ?) > 0")
            params.append(search.lower())

        where_sql = " AND ".join(clauses)
        with self._db.connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_TASKS.table} WHERE {where_sql} ORDER BY {_TASKS.id} ASC",
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]
