"""Command-line interface for the auth gateway."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from getpass import getpass
from pathlib import Path
from typing import Sequence


def _running_in_virtualenv() -> bool:
    """Return ``True`` when the current interpreter is executing inside a venv."""

    base_prefix = getattr(sys, "base_prefix", sys.prefix)
    return sys.prefix != base_prefix


def _bootstrap_virtualenv() -> None:
    """Re-exec the script using the bundled virtualenv interpreter when available."""

    if _running_in_virtualenv():
        return

    root = Path(__file__).resolve().parent
    venv_dir = root / ".venv"
    if not venv_dir.is_dir():
        return

    candidates = (
        venv_dir / "bin" / "python",
        venv_dir / "bin" / "python3",
        venv_dir / "Scripts" / "python.exe",
        venv_dir / "Scripts" / "python",
    )

    script = str(Path(__file__).resolve())
    for candidate in candidates:
        if candidate.exists():
            os.execv(str(candidate), [str(candidate), script, *sys.argv[1:]])


if __name__ == "__main__":
    _bootstrap_virtualenv()

try:
    import anyio
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'anyio' package is required. Execute `pip install -e .` to install dependencies."
    ) from exc

from authapi.auth import MIN_PASSWORD_LENGTH, AuthService
from authapi.config import StoreSettings, load_store_settings, resolve_config_path
from authapi.errors import AuthServiceError
from authapi.store import UserStore, storage_key

logger = logging.getLogger("authgateway.main")

_DEFAULT_PORT = 8787


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to the YAML store configuration (default: AUTH_CONFIG_PATH or config/auth.yaml)",
    )

    parser = argparse.ArgumentParser(description="Auth gateway utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Start the HTTP auth service"
    )
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=_DEFAULT_PORT,
        help=f"Port for the HTTP API (default: {_DEFAULT_PORT})",
    )
    serve_parser.add_argument(
        "--ssl-certfile",
        default=None,
        help="Path to the TLS certificate chain in PEM format",
    )
    serve_parser.add_argument(
        "--ssl-keyfile",
        default=None,
        help="Path to the TLS private key in PEM format",
    )

    lookup_parser = subparsers.add_parser(
        "lookup",
        parents=[common],
        help="Show the storage key for an email and whether a record exists",
    )
    lookup_parser.add_argument("email", help="Account email address")

    create_parser = subparsers.add_parser(
        "create-user",
        parents=[common],
        help="Create an account using the same rules as POST /signup",
    )
    create_parser.add_argument("email", help="Account email address")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "lookup", "create-user"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(config: str | None) -> StoreSettings:
    config_path = resolve_config_path(config or os.getenv("AUTH_CONFIG_PATH"))
    settings = load_store_settings(config_path)
    logger.info("Using user store at %s", settings.base_url)
    return settings


def _serve(
    *,
    settings: StoreSettings,
    host: str,
    port: int,
    ssl_certfile: str | None,
    ssl_keyfile: str | None,
) -> None:
    from authapi.service import create_app
    import uvicorn

    if bool(ssl_certfile) ^ bool(ssl_keyfile):
        raise SystemExit("Both --ssl-certfile and --ssl-keyfile must be provided together.")

    protocol = "https" if ssl_certfile and ssl_keyfile else "http"
    logger.info("Starting auth API on %s://%s:%s", protocol, host, port)

    app = create_app(settings=settings)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )


def _lookup(settings: StoreSettings, email: str) -> int:
    service = AuthService(UserStore(settings))
    key = storage_key(email)
    print(f"Storage key: {key}")

    try:
        user = anyio.run(service.lookup, email)
    except AuthServiceError as exc:
        print(f"Lookup failed: {exc.message}")
        return 1

    if user is None:
        print("No record is stored for this email.")
        return 1

    print(f"Record found for {user.email or '<no email>'}")
    return 0


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass(f"Password (min {MIN_PASSWORD_LENGTH} characters): ")
        if len(password) < MIN_PASSWORD_LENGTH:
            print("Password is too short. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _create_user(settings: StoreSettings, email: str) -> int:
    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.")
        return 1

    service = AuthService(UserStore(settings))
    try:
        message = anyio.run(service.signup, email, password)
    except AuthServiceError as exc:
        print(f"Failed to create user: {exc.message}")
        return 1

    print(message)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = _load_settings(args.config)
    except ValueError as exc:
        raise SystemExit(f"Invalid store configuration: {exc}") from exc

    if args.command == "serve":
        _serve(
            settings=settings,
            host=args.host,
            port=args.port,
            ssl_certfile=args.ssl_certfile,
            ssl_keyfile=args.ssl_keyfile,
        )
    elif args.command == "lookup":
        raise SystemExit(_lookup(settings, args.email))
    elif args.command == "create-user":
        raise SystemExit(_create_user(settings, args.email))


if __name__ == "__main__":
    main()
