from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConflictError
from .models import TaskEntity, UserEntity
from .settings import Settings

logger = logging.getLogger(__name__)

# Task columns a partial update may touch; id and user_id are immutable.
UPDATABLE_TASK_FIELDS = ("title", "date", "is_checked")


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract contract for credential storage backends."""

    @abstractmethod
    def get(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserEntity]:
        """Return a user by exact email, or None if not found."""

    @abstractmethod
    def create(self, email: str, password_hash: str, image: str = "") -> UserEntity:
        """Create and return a new user. Raise ConflictError if the email is taken."""

    @abstractmethod
    def update_image(self, user_id: int, image: str) -> Optional[UserEntity]:
        """Set a user's image path. Return the updated user or None if not found."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """Abstract contract for task storage backends."""

    @abstractmethod
    def create(self, user_id: int, title: str, date: str, is_checked: bool) -> TaskEntity:
        """Create and return a new task owned by user_id."""

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskEntity]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def update(self, task_id: int, fields: Mapping[str, Any]) -> Optional[TaskEntity]:
        """
        Overwrite only the given fields (a subset of UPDATABLE_TASK_FIELDS).
        Return the updated task or None if not found.
        """

    @abstractmethod
    def list(
        self,
        user_id: int,
        date: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TaskEntity]:
        """
        Return the tasks of one user in id order.
        - date: exact match on the date string
        - search: case-insensitive substring match on the title
        Both filters combine with AND.
        """


def checked_task_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(UPDATABLE_TASK_FIELDS)
    if unknown:
        raise ValueError(f"cannot update task fields: {sorted(unknown)}")
    return dict(fields)


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory user store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, UserEntity] = {}
        self._next_id = 1

    def get(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            item = self._items.get(user_id)
            return None if item is None else item.copy()

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            for item in self._items.values():
                if item["email"] == email:
                    return item.copy()
            return None

    def create(self, email: str, password_hash: str, image: str = "") -> UserEntity:
        with self._lock:
            if any(u["email"] == email for u in self._items.values()):
                raise ConflictError("User exists")
            entity: UserEntity = {
                "id": self._next_id,
                "email": email,
                "password_hash": password_hash,
                "image": image,
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            return entity.copy()

    def update_image(self, user_id: int, image: str) -> Optional[UserEntity]:
        with self._lock:
            existing = self._items.get(user_id)
            if existing is None:
                return None
            existing["image"] = image
            return existing.copy()


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory task store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, TaskEntity] = {}
        self._next_id = 1

    def create(self, user_id: int, title: str, date: str, is_checked: bool) -> TaskEntity:
        with self._lock:
            entity: TaskEntity = {
                "id": self._next_id,
                "user_id": user_id,
                "title": title,
                "date": date,
                "is_checked": is_checked,
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            return entity.copy()

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def update(self, task_id: int, fields: Mapping[str, Any]) -> Optional[TaskEntity]:
        changes = checked_task_fields(fields)
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(changes)  # type: ignore[typeddict-item]
            self._items[task_id] = updated
            return updated.copy()

    def list(
        self,
        user_id: int,
        date: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TaskEntity]:
        needle = search.lower() if search else None
        with self._lock:
            items = [t for t in self._items.values() if t["user_id"] == user_id]
            if date:
                items = [t for t in items if t["date"] == date]
            if needle:
                items = [t for t in items if needle in t["title"].lower()]
            # Dict insertion order is id order.
            return [t.copy() for t in items]


@dataclass(frozen=True)
class Stores:
    """The pair of stores a running app uses."""

    users: UserRepository
    tasks: TaskRepository


# PUBLIC_INTERFACE
def build_stores(settings: Settings) -> Stores:
    """
    Build the configured stores.
    - memory: InMemoryUserRepository + InMemoryTaskRepository
    - sqlite: SQLiteUserRepository + SQLiteTaskRepository sharing one db file
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteDatabase, SQLiteTaskRepository, SQLiteUserRepository

        database = SQLiteDatabase(settings.sqlite_db_path)
        logger.info("Using sqlite stores at %s", settings.sqlite_db_path)
        return Stores(users=SQLiteUserRepository(database), tasks=SQLiteTaskRepository(database))
    logger.info("Using in-memory stores")
    return Stores(users=InMemoryUserRepository(), tasks=InMemoryTaskRepository())
