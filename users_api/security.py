"""Static bearer token helpers for the users API."""
from __future__ import annotations

import secrets
from typing import Iterable, List, Optional

from fastapi.security.utils import get_authorization_scheme_param

DEFAULT_DEV_TOKEN = "dev-token-123"


def parse_token_list(raw: str | Iterable[str]) -> List[str]:
    """Split a comma separated string (or iterable) into trimmed tokens."""

    items = raw.split(",") if isinstance(raw, str) else raw
    return [str(token).strip() for token in items if str(token).strip()]


def parse_bearer_header(header: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header."""

    scheme, credentials = get_authorization_scheme_param((header or "").strip())
    if scheme.lower() != "bearer":
        return None
    token = credentials.strip()
    return token or None


def mask_token(token: Optional[str]) -> str:
    """Reduce ``token`` to its last four characters for audit logs."""

    if not token or token == "anonymous":
        return "anonymous"
    if len(token) <= 4:
        return "****"
    return "****" + token[-4:]


class TokenAllowList:
    """Set of accepted bearer tokens using constant-time comparisons."""

    def __init__(self, tokens: Iterable[str]):
        token_list: List[str] = parse_token_list(tokens)
        if not token_list:
            raise ValueError("At least one API token must be provided")
        self._tokens = token_list

    def __contains__(self, provided: object) -> bool:
        if not isinstance(provided, str) or not provided:
            return False
        candidate = provided.encode("utf-8")
        for token in self._tokens:
            if secrets.compare_digest(candidate, token.encode("utf-8")):
                return True
        return False

    def __len__(self) -> int:
        return len(self._tokens)

    def masked(self) -> List[str]:
        return [mask_token(token) for token in self._tokens]


__all__ = [
    "DEFAULT_DEV_TOKEN",
    "TokenAllowList",
    "mask_token",
    "parse_bearer_header",
    "parse_token_list",
]
