"""Request validation rules for user payloads.

Both validators are pure: they inspect the payload together with a snapshot
of the current users and return ``None`` when the request is acceptable or a
client-facing error message otherwise.
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

import email_validator
from email_validator import EmailNotValidError, validate_email

from .models import CreateUserRequest, UpdateUserRequest, User

MAX_NAME_LENGTH = 100

# Intranet hosts such as admin@localhost or printer@office.local are valid
# addresses for this service. email-validator treats these names as reserved
# unless they are dropped from its special-use list.
LOCAL_DOMAIN_NAMES = ("localhost", "local")
for _name in LOCAL_DOMAIN_NAMES:
    if _name in email_validator.SPECIAL_USE_DOMAIN_NAMES:
        email_validator.SPECIAL_USE_DOMAIN_NAMES.remove(_name)


def is_valid_email(value: Optional[str]) -> bool:
    """Return ``True`` when ``value`` is a syntactically valid address."""

    if value is None or not value.strip():
        return False
    try:
        validate_email(
            value.strip(),
            check_deliverability=False,
            globally_deliverable=False,
            test_environment=True,
        )
    except EmailNotValidError:
        return False
    return True


def _email_in_use(email: str, users: Iterable[User], *, exclude: Optional[UUID] = None) -> bool:
    wanted = email.strip().casefold()
    return any(user.id != exclude and user.email.casefold() == wanted for user in users)


def validate_create(request: Optional[CreateUserRequest], users: Iterable[User]) -> Optional[str]:
    if request is None:
        return "Request body is required."
    first_name = request.first_name
    last_name = request.last_name
    if not first_name or not first_name.strip() or not last_name or not last_name.strip():
        return "FirstName and LastName are required."
    if len(first_name) > MAX_NAME_LENGTH or len(last_name) > MAX_NAME_LENGTH:
        return "FirstName and LastName must be 100 characters or fewer."
    if not is_valid_email(request.email):
        return "Email is invalid."
    if _email_in_use(request.email, users):
        return "Email already in use."
    return None


def validate_update(
    request: Optional[UpdateUserRequest],
    users: Iterable[User],
    target_id: UUID,
) -> Optional[str]:
    """Validate a partial update of the user identified by ``target_id``.

    Absent fields are not checked. The target's own record is ignored by the
    uniqueness check so that re-submitting its current email is accepted.
    """

    if request is None:
        return "Request body is required."
    if request.first_name is not None and len(request.first_name) > MAX_NAME_LENGTH:
        return "FirstName must be 100 characters or fewer."
    if request.last_name is not None and len(request.last_name) > MAX_NAME_LENGTH:
        return "LastName must be 100 characters or fewer."
    if request.email is not None:
        if not is_valid_email(request.email):
            return "Email is invalid."
        if _email_in_use(request.email, users, exclude=target_id):
            return "Email already in use."
    return None


__all__ = ["MAX_NAME_LENGTH", "is_valid_email", "validate_create", "validate_update"]
