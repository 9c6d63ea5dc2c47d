"""Command-line interface for the users API service."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from users_api.config import Settings, load_settings
from users_api.security import TokenAllowList

logger = logging.getLogger("users_api.main")

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Users API utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP users service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP API (default: 8000)",
    )
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: $USERS_API_CONFIG)",
    )
    serve_parser.add_argument(
        "--development",
        action="store_true",
        help="Run in development mode: enable API docs and skip auth for health/docs paths",
    )
    serve_parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Start with an empty store instead of the demo user",
    )
    serve_parser.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        default="info",
        help="Logging verbosity (default: info)",
    )

    check_parser = subparsers.add_parser(
        "check-config", help="Validate and print the resolved configuration"
    )
    check_parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: $USERS_API_CONFIG)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "check-config"}

    if not args_list or args_list[0] not in known_commands | {"-h", "--help"}:
        args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(config: str | None) -> Settings:
    config_path = Path(config).expanduser().resolve(strict=False) if config else None
    return load_settings(config_path)


def _apply_overrides(settings: Settings, *, development: bool, no_seed: bool) -> Settings:
    if development:
        settings = replace(settings, environment="development")
    if no_seed:
        settings = replace(settings, seed_demo_user=False)
    return settings


def _serve(*, settings: Settings, host: str, port: int, log_level: str) -> None:
    from users_api.api import create_app
    import uvicorn

    logger.info(
        "Starting users API on http://%s:%s (environment=%s)",
        host,
        port,
        settings.environment,
    )

    app = create_app(settings=settings)
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _check_config(settings: Settings) -> None:
    tokens = TokenAllowList(settings.api_tokens)
    print(f"Environment: {settings.environment}")
    print(f"Development mode: {'yes' if settings.development else 'no'}")
    print(f"Seed demo user: {'yes' if settings.seed_demo_user else 'no'}")
    print(f"{len(tokens)} API token(s) configured: {', '.join(tokens.masked())}")
    if settings.development:
        print(f"Auth-exempt prefixes: {', '.join(settings.auth_exempt_prefixes) or '<none>'}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    level = getattr(args, "log_level", "info").upper()
    logging.basicConfig(level=getattr(logging, level), format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        settings = _load_settings(getattr(args, "config", None))
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if args.command == "serve":
        settings = _apply_overrides(
            settings,
            development=getattr(args, "development", False),
            no_seed=getattr(args, "no_seed", False),
        )
        _serve(
            settings=settings,
            host=getattr(args, "host", "0.0.0.0"),
            port=getattr(args, "port", 8000),
            log_level=getattr(args, "log_level", "info"),
        )
    elif args.command == "check-config":
        _check_config(settings)


if __name__ == "__main__":
    main()
