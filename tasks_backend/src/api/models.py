from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A user record as held by the credential stores.

    Fields:
    - id: Unique integer identifier assigned by the store
    - email: Login key, unique and case-sensitive
    - password_hash: Salted one-way digest; never leaves the service layer
    - image: Relative path of the stored profile image, or "" when unset
    """

    id: int
    email: str
    password_hash: str
    image: str


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task record as held by the task stores.

    Fields:
    - id: Unique integer identifier assigned by the store
    - user_id: Owning user's id; never changes after creation
    - title: Non-empty title
    - date: Non-empty, application-defined date string
    - is_checked: Completion flag
    """

    id: int
    user_id: int
    title: str
    date: str
    is_checked: bool


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Identity:
    """The caller identity carried by a verified token."""

    id: int
    email: str
