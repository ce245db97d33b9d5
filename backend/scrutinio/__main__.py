"""Scrutinio CLI entry point."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path.cwd() / ".env"
load_dotenv(env_file)

from scrutinio import __version__
from scrutinio.accounts import UserLedger
from scrutinio.bets import BetEngine
from scrutinio.config import Settings, get_settings
from scrutinio.exceptions import ScrutinioError
from scrutinio.services.objectstore import create_object_store
from scrutinio.storage import TableRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def _build_services(settings: Settings) -> tuple[UserLedger, BetEngine]:
    store = create_object_store(settings.storage.object_store_config())
    repository = TableRepository.from_config(store, settings.storage)
    ledger = UserLedger(repository, settings.security)
    return ledger, BetEngine(repository, ledger)


def _mask(value: str) -> str:
    return "✓ Set" if value else "✗ Not set"


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP API."""
    import uvicorn

    from scrutinio.api import create_app
    from scrutinio.observability import initialize_logfire

    try:
        settings = get_settings()
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        else:
            logging.getLogger().setLevel(settings.log_level)

        app = create_app(settings)
        initialize_logfire(settings, app)

        uvicorn.run(
            app,
            host=args.host or settings.server.host,
            port=args.port or settings.server.port,
            log_level="debug" if args.debug else settings.log_level.lower(),
        )
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Scrutinio Configuration ===\n")
        print(f"Environment: {settings.environment}")
        print(f"Log Level: {settings.log_level}\n")

        storage = settings.storage
        print("Storage:")
        print(f"  Endpoint: {storage.endpoint_url}")
        print(f"  Region: {storage.region}")
        print(f"  Bucket: {storage.bucket or '(not set)'}")
        print(f"  Prefix: {storage.prefix!r}")
        print(f"  Object Suffix: {storage.object_suffix}")
        print(f"  Path Style: {storage.force_path_style}")
        print(f"  Access Key: {_mask(storage.access_key_id)}")
        print(f"  Secret Key: {_mask(storage.secret_access_key)}\n")

        print("Security:")
        print(f"  PBKDF2 Iterations: {settings.security.password_iterations:,}")
        print(f"  Min Username Length: {settings.security.min_username_length}\n")

        print("Server:")
        print(f"  Listen: {settings.server.host}:{settings.server.port}")
        print(f"  CORS Origins: {', '.join(settings.server.cors_origins)}\n")

        print(f"Logfire: {_mask(settings.logfire_token)}\n")
        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1


def cmd_bets(args: argparse.Namespace) -> int:
    """List all bets."""
    try:
        _, engine = _build_services(get_settings())
        bets = engine.list_bets()
    except (ScrutinioError, ValueError) as e:
        print(f"\n❌ Failed to list bets: {e}\n")
        return 1

    print(f"\n=== Bets ({len(bets)}) ===\n")
    if not bets:
        print("  (None)\n")
        return 0

    for bet in bets:
        state = f"terminated, realized={bet['realized']}" if bet["terminated_at"] else "open"
        print(f"  {bet['id']}  {bet['subject']} -> {bet['outcome']} [{state}]")
        for entry in bet["stances"]:
            print(f"      {entry['user_id']}: {entry['stance'] or '-'}")
    print()
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    """Rewrite the users table, optionally promoting one user to admin."""
    try:
        ledger, _ = _build_services(get_settings())
        result = ledger.promote(username=args.username, user_id=args.user_id)
    except (ScrutinioError, ValueError) as e:
        print(f"\n❌ Migration failed: {e}\n")
        return 1

    print(f"\nMigrated {result.total} users")
    if result.promoted:
        print(f"Admin: {result.promoted.username} ({result.promoted.id})")
    print()
    return 0


def cmd_reset(args: argparse.Namespace) -> int:
    """Zero every user's win/loss counters."""
    try:
        ledger, _ = _build_services(get_settings())
        total = ledger.reset_all_counters(user_id=args.user_id)
    except (ScrutinioError, ValueError) as e:
        print(f"\n❌ Reset failed: {e}\n")
        return 1

    print(f"\nReset counters for {total} users\n")
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Scrutinio: friendly bets on end-of-year school outcomes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Scrutinio {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_serve = subparsers.add_parser("serve", help="Start the HTTP API")
    parser_serve.add_argument("--host", default=None, help="Bind address (default from config)")
    parser_serve.add_argument("--port", type=int, default=None, help="Port (default from config)")
    parser_serve.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_serve.set_defaults(func=cmd_serve)

    parser_config = subparsers.add_parser("config", help="Display merged configuration")
    parser_config.set_defaults(func=cmd_config)

    parser_bets = subparsers.add_parser("bets", help="List all bets")
    parser_bets.set_defaults(func=cmd_bets)

    parser_migrate = subparsers.add_parser(
        "migrate",
        help="Rewrite the users table and optionally promote an admin",
    )
    parser_migrate.add_argument("--username", default=None, help="Username to promote")
    parser_migrate.add_argument("--user-id", default=None, help="User id to promote")
    parser_migrate.set_defaults(func=cmd_migrate)

    parser_reset = subparsers.add_parser("reset", help="Zero all win/loss counters")
    parser_reset.add_argument("--user-id", required=True, help="Id of the admin performing the reset")
    parser_reset.set_defaults(func=cmd_reset)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
