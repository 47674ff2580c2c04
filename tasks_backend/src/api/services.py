"""
Business logic behind the HTTP routes.

Services receive already-validated input (see schemas) and a resolved caller
identity (see auth), talk to the stores, and raise AppError subclasses which
the handlers in main turn into {"error": ...} responses.
"""

from __future__ import annotations

import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .auth import authorize
from .errors import NotFoundError, UnauthorizedError, ValidationError
from .models import Identity, TaskEntity
from .repositories import TaskRepository, UserRepository
from .schemas import TaskCreate, TaskUpdate
from .security import PASSWORD_HASH_METHOD, TokenService, hash_password, verify_password
from .storage import LocalFileStorage

logger = logging.getLogger(__name__)

# Content type -> file extension used when the upload's own name has none we accept.
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}
_ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


# PUBLIC_INTERFACE
class AccountService:
    """Registration and login."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        password_hash_method: str = PASSWORD_HASH_METHOD,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._hash_method = password_hash_method
        # Checked against when the email is unknown, so both login failures cost the same.
        self._dummy_hash = hash_password(secrets.token_hex(16), method=password_hash_method)

    def register(self, email: str, password: str) -> None:
        """
        Create a user with a hashed password.

        Raises:
            ConflictError: if the email is already registered (raised by the store).
        """
        user = self._users.create(email, hash_password(password, method=self._hash_method), image="")
        logger.info("Registered user %s", user["id"])

    def login(self, email: str, password: str) -> str:
        """
        Check credentials and issue a token.

        Raises:
            UnauthorizedError: for an unknown email or a wrong password (same message).
        """
        user = self._users.get_by_email(email)
        if user is None:
            verify_password(password, self._dummy_hash)
            logger.info("Login failed: unknown email")
            raise UnauthorizedError("Invalid credentials")
        if not verify_password(password, user["password_hash"]):
            logger.info("Login failed for user %s: wrong password", user["id"])
            raise UnauthorizedError("Invalid credentials")
        return self._tokens.issue(user["id"], user["email"])


# PUBLIC_INTERFACE
class TaskService:
    """Owner-scoped task creation, listing and partial updates."""

    def __init__(self, tasks: TaskRepository) -> None:
        self._tasks = tasks

    def create(self, owner: Identity, payload: TaskCreate) -> TaskEntity:
        task = self._tasks.create(
            user_id=owner.id,
            title=payload.title,
            date=payload.date,
            is_checked=payload.is_checked,
        )
        logger.info("User %s created task %s", owner.id, task["id"])
        return task

    def list(
        self,
        owner: Identity,
        date: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TaskEntity]:
        """
        List the caller's tasks. Empty filter values count as absent.
        """
        return self._tasks.list(owner.id, date=date or None, search=search or None)

    def update(self, caller: Identity, task_id: int, payload: TaskUpdate) -> TaskEntity:
        """
        Apply the fields present in payload to one of the caller's tasks.

        Raises:
            NotFoundError: if the task does not exist or belongs to someone else.
                Both cases look the same to the caller.
        """
        task = self._tasks.get(task_id)
        if task is None or not authorize(caller, task):
            raise NotFoundError("Task not found")

        changes = payload.changes()
        updated = self._tasks.update(task_id, changes)
        if updated is None:
            raise NotFoundError("Task not found")
        logger.info("User %s updated task %s (%s)", caller.id, task_id, ", ".join(sorted(changes)) or "no fields")
        return updated


# PUBLIC_INTERFACE
class ProfileService:
    """Profile view with task statistics, and profile image upload."""

    def __init__(
        self,
        users: UserRepository,
        tasks: TaskRepository,
        files: LocalFileStorage,
        max_image_bytes: int,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._users = users
        self._tasks = tasks
        self._files = files
        self._max_image_bytes = max_image_bytes
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def max_image_bytes(self) -> int:
        return self._max_image_bytes

    def get_profile(self, user_id: int) -> dict:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        tasks = self._tasks.list(user_id)
        return {
            "email": user["email"],
            "image": user["image"],
            "stats": {
                "total": len(tasks),
                "completed": sum(1 for t in tasks if t["is_checked"]),
            },
        }

    def _image_name(self, user_id: int, filename: str, content_type: str) -> str:
        ext = os.path.splitext(filename)[1].lower()
        if ext not in _ALLOWED_EXTENSIONS:
            ext = ALLOWED_IMAGE_TYPES[content_type]
        millis = int(self._clock().timestamp() * 1000)
        return f"user_{user_id}_{millis}{ext}"

    def update_image(
        self,
        user_id: int,
        data: Optional[bytes],
        filename: Optional[str],
        content_type: Optional[str],
    ) -> str:
        """
        Validate and store a new profile image, then point the user at it.

        Type and size are checked before anything is written.

        Returns:
            The relative path now stored on the user.
        """
        if data is None or not filename:
            raise ValidationError("No image file uploaded")

        declared = (content_type or "").split(";", 1)[0].strip().lower()
        if declared not in ALLOWED_IMAGE_TYPES:
            raise ValidationError("Unsupported image type; use JPEG, PNG or GIF")
        if len(data) > self._max_image_bytes:
            raise ValidationError(f"Image exceeds the {self._max_image_bytes} byte limit")
        if not data:
            raise ValidationError("Uploaded image is empty")

        if self._users.get(user_id) is None:
            raise NotFoundError("User not found")

        path = self._files.store(data, self._image_name(user_id, filename, declared))
        if self._users.update_image(user_id, path) is None:
            raise NotFoundError("User not found")
        logger.info("User %s profile image set to %s", user_id, path)
        return path
