"""In-memory user directory served over HTTP with bearer token auth."""

from __future__ import annotations

from typing import Any

from .store import UserStore


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the users API application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = ["UserStore", "create_app"]
