"""Tests for the create and update validators."""

from __future__ import annotations

import unittest
import uuid
from datetime import datetime, timezone

from users_api.models import CreateUserRequest, UpdateUserRequest, User
from users_api.validation import is_valid_email, validate_create, validate_update


def _existing(email: str = "taken@example.com") -> User:
    return User(uuid.uuid4(), "Taken", "User", email, datetime.now(timezone.utc))


class EmailSyntaxTests(unittest.TestCase):
    def test_accepts_plain_addresses(self) -> None:
        self.assertTrue(is_valid_email("bob@x.com"))
        self.assertTrue(is_valid_email("  alice@example.com  "))

    def test_accepts_intranet_and_test_domains(self) -> None:
        for value in ("admin@localhost", "bob@example.test", "bob@host.local"):
            with self.subTest(value=value):
                self.assertTrue(is_valid_email(value))

    def test_rejects_other_reserved_domains(self) -> None:
        self.assertFalse(is_valid_email("bob@host.invalid"))

    def test_rejects_malformed_addresses(self) -> None:
        for value in (None, "", "   ", "not-an-email", "missing@", "@example.com", "a b@example.com"):
            with self.subTest(value=value):
                self.assertFalse(is_valid_email(value))


class ValidateCreateTests(unittest.TestCase):
    def test_accepts_complete_request(self) -> None:
        request = CreateUserRequest(first_name="Bob", last_name="Jones", email="bob@x.com")
        self.assertIsNone(validate_create(request, [_existing()]))

    def test_requires_body(self) -> None:
        self.assertEqual(validate_create(None, []), "Request body is required.")

    def test_requires_both_names(self) -> None:
        for first, last in (("", "Jones"), ("Bob", "   "), (None, "Jones"), ("Bob", None)):
            with self.subTest(first=first, last=last):
                request = CreateUserRequest(first_name=first, last_name=last, email="bob@x.com")
                self.assertEqual(validate_create(request, []), "FirstName and LastName are required.")

    def test_limits_name_length(self) -> None:
        request = CreateUserRequest(first_name="B" * 101, last_name="Jones", email="bob@x.com")
        self.assertEqual(
            validate_create(request, []),
            "FirstName and LastName must be 100 characters or fewer.",
        )
        exactly = CreateUserRequest(first_name="B" * 100, last_name="J" * 100, email="bob@x.com")
        self.assertIsNone(validate_create(exactly, []))

    def test_rejects_invalid_email(self) -> None:
        request = CreateUserRequest(first_name="Bob", last_name="Jones", email="bob-at-x")
        self.assertEqual(validate_create(request, []), "Email is invalid.")

    def test_email_uniqueness_ignores_case(self) -> None:
        request = CreateUserRequest(first_name="Bob", last_name="Jones", email="TAKEN@Example.com")
        self.assertEqual(validate_create(request, [_existing()]), "Email already in use.")


class ValidateUpdateTests(unittest.TestCase):
    def test_all_fields_optional(self) -> None:
        self.assertIsNone(validate_update(UpdateUserRequest(), [], uuid.uuid4()))

    def test_requires_body(self) -> None:
        self.assertEqual(validate_update(None, [], uuid.uuid4()), "Request body is required.")

    def test_limits_each_name_separately(self) -> None:
        target = uuid.uuid4()
        self.assertEqual(
            validate_update(UpdateUserRequest(first_name="x" * 101), [], target),
            "FirstName must be 100 characters or fewer.",
        )
        self.assertEqual(
            validate_update(UpdateUserRequest(last_name="x" * 101), [], target),
            "LastName must be 100 characters or fewer.",
        )

    def test_rejects_invalid_email(self) -> None:
        self.assertEqual(
            validate_update(UpdateUserRequest(email="nope"), [], uuid.uuid4()),
            "Email is invalid.",
        )

    def test_own_email_is_not_a_conflict(self) -> None:
        current = _existing("me@example.com")
        request = UpdateUserRequest(email="ME@example.com")
        self.assertIsNone(validate_update(request, [current], current.id))

    def test_email_of_another_user_is_a_conflict(self) -> None:
        current = _existing("me@example.com")
        other = _existing("other@example.com")
        request = UpdateUserRequest(email="Other@Example.com")
        self.assertEqual(validate_update(request, [current, other], current.id), "Email already in use.")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
