"""Thread-safe in-memory storage for user records."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional
from uuid import UUID

from .models import User


class UserStore:
    """Map of user id to :class:`User` guarded by a single lock.

    Each operation is atomic on its own. Callers that need to iterate must use
    :meth:`snapshot`, which copies the values while holding the lock.
    """

    def __init__(self) -> None:
        self._users: Dict[UUID, User] = {}
        self._lock = threading.Lock()

    def try_add(self, user: User) -> bool:
        """Insert ``user`` unless its id is already present."""

        with self._lock:
            if user.id in self._users:
                return False
            self._users[user.id] = user
            return True

    def get(self, user_id: UUID) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def set(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user

    def remove(self, user_id: UUID) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def snapshot(self) -> List[User]:
        """Return the stored users in insertion order."""

        with self._lock:
            return list(self._users.values())

    def clear(self) -> None:
        with self._lock:
            self._users.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._users


__all__ = ["UserStore"]
