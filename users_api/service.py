"""User CRUD operations backed by :class:`~users_api.store.UserStore`."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .models import CreateUserRequest, UpdateUserRequest, User
from .store import UserStore
from .validation import validate_create, validate_update

logger = logging.getLogger("users_api.service")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class UserServiceError(Exception):
    """Base class for errors raised by :class:`UserService`."""


class UserValidationError(UserServiceError):
    """The request was rejected by the validator."""


class UserNotFoundError(UserServiceError):
    """No user exists with the requested identifier."""

    def __init__(self, user_id: object) -> None:
        super().__init__("User not found.")
        self.user_id = user_id


class UserStoreError(UserServiceError):
    """The store refused a write that should have succeeded."""


@dataclass(frozen=True)
class UserPage:
    page: int
    page_size: int
    total: int
    items: List[User]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clamp(value: int, lower: int, upper: Optional[int] = None) -> int:
    if value < lower:
        return lower
    if upper is not None and value > upper:
        return upper
    return value


def _matches(user: User, needle: str) -> bool:
    return (
        needle in user.first_name.casefold()
        or needle in user.last_name.casefold()
        or needle in user.email.casefold()
    )


def _pick(candidate: Optional[str], current: str) -> str:
    if candidate is None or not candidate.strip():
        return current
    return candidate.strip()


class UserService:
    """Implements the list, get, create, update and delete operations."""

    def __init__(
        self,
        store: UserStore,
        *,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._id_factory = id_factory
        self._clock = clock

    @property
    def store(self) -> UserStore:
        return self._store

    def list_users(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        search: Optional[str] = None,
    ) -> UserPage:
        """Return one page of users, optionally filtered by ``search``.

        ``page`` is clamped to at least 1 and ``page_size`` to ``[1, 200]``.
        The filter is a case-insensitive substring match on first name, last
        name and email. ``total`` counts the filtered users before slicing.
        """

        current_page = _clamp(DEFAULT_PAGE if page is None else page, 1)
        size = _clamp(DEFAULT_PAGE_SIZE if page_size is None else page_size, 1, MAX_PAGE_SIZE)

        users = self._store.snapshot()
        if search is not None and search.strip():
            needle = search.strip().casefold()
            users = [user for user in users if _matches(user, needle)]

        offset = (current_page - 1) * size
        return UserPage(
            page=current_page,
            page_size=size,
            total=len(users),
            items=users[offset : offset + size],
        )

    def get_user(self, user_id: uuid.UUID) -> User:
        user = self._store.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def create_user(self, request: Optional[CreateUserRequest]) -> User:
        error = validate_create(request, self._store.snapshot())
        if error is not None:
            raise UserValidationError(error)

        user = User(
            id=self._id_factory(),
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            email=request.email.strip(),
            created_at=self._clock(),
        )
        if not self._store.try_add(user):
            logger.warning("Failed to add user with id %s", user.id)
            raise UserStoreError(f"User id {user.id} already exists")
        logger.info("Created user %s", user.id)
        return user

    def update_user(self, user_id: uuid.UUID, request: Optional[UpdateUserRequest]) -> User:
        """Apply the non-blank fields of ``request`` to an existing user.

        Blank or missing fields keep their current value, so an update can
        never clear a field.
        """

        existing = self._store.get(user_id)
        if existing is None:
            raise UserNotFoundError(user_id)

        error = validate_update(request, self._store.snapshot(), user_id)
        if error is not None:
            raise UserValidationError(error)

        updated = replace(
            existing,
            first_name=_pick(request.first_name, existing.first_name),
            last_name=_pick(request.last_name, existing.last_name),
            email=_pick(request.email, existing.email),
        )
        self._store.set(updated)
        logger.info("Updated user %s", user_id)
        return updated

    def delete_user(self, user_id: uuid.UUID) -> None:
        if not self._store.remove(user_id):
            raise UserNotFoundError(user_id)
        logger.info("Deleted user %s", user_id)

    def seed_demo_user(self) -> User:
        """Insert the demonstration record the service starts with."""

        return self.create_user(
            CreateUserRequest(first_name="Alice", last_name="Smith", email="alice@example.com")
        )


__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "UserNotFoundError",
    "UserPage",
    "UserService",
    "UserServiceError",
    "UserStoreError",
    "UserValidationError",
]
