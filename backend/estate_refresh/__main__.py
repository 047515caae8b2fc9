"""Estate refresh CLI entry point."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv(Path.cwd() / ".env")

from estate_refresh import __version__
from estate_refresh.config import get_settings
from estate_refresh.paths import base_path, resolve_path
from estate_refresh.pipeline.models import TriggerRequest
from estate_refresh.pipeline.orchestrator import SyncRebuildOrchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from estate_refresh.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _cli_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if args.content_dir:
        overrides["content_directory"] = Path(args.content_dir)
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.timeout:
        overrides["stage_timeout_seconds"] = args.timeout
    return overrides


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Estate Refresh Configuration ===\n")
        print(f"Project Root: {settings.project_root}")
        print(f"Content Directory: {settings.content_directory}")
        print(f"Sync Tool Directory: {settings.sync_tool_directory}\n")

        print("Site:")
        print(f"  Base URL: {settings.base_url}")
        print(f"  Base Path: {base_path(settings.base_url)}")
        print(f"  Listings Path: {resolve_path(settings.base_url, 'listings')}")
        print(f"  Environment: {settings.hugo_env}\n")

        print("Commands:")
        print(f"  Sync: {settings.commands.sync}")
        print(f"  Build: {settings.commands.build}")
        timeout = settings.stage_timeout_seconds
        print(f"  Stage Timeout: {f'{timeout}s' if timeout else 'none'}\n")

        print("Trigger:")
        print(f"  Header: {settings.trigger.header}\n")

        print("Scheduler:")
        print(f"  Interval: every {settings.scheduler.sync_interval_hours} h\n")

        print(f"Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Run the pipeline once, or start the scheduler."""
    try:
        _init_logfire()

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        settings = get_settings()
        overrides = _cli_overrides(args)

        print("\n=== Estate Index Sync and Rebuild ===\n")
        print(f"Version: {__version__}")
        print(f"Project Root: {settings.project_root}\n")

        if args.once:
            orchestrator = SyncRebuildOrchestrator(settings)
            request = TriggerRequest(
                headers=orchestrator.authenticator.marker(),
                source="cli",
            )
            outcome = asyncio.run(orchestrator.run(request, overrides))
            _, body = outcome.to_response()
            print(json.dumps(body, indent=2))
            return 0 if outcome.success else 1

        from estate_refresh.scheduler import start_scheduler

        update = {
            "content_dir": overrides.get("content_directory"),
            "base_url": overrides.get("base_url"),
            "stage_timeout_seconds": overrides.get("stage_timeout_seconds"),
        }
        settings = settings.model_copy(update={k: v for k, v in update.items() if v is not None})

        print("Starting scheduler...\n")
        start_scheduler(settings)

        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Serve the cron trigger API."""
    import uvicorn

    from estate_refresh.api.server import create_app
    from estate_refresh.observability import initialize_logfire

    try:
        settings = get_settings()
        app = create_app(orchestrator=SyncRebuildOrchestrator(settings), settings=settings)
        initialize_logfire(settings, app)

        uvicorn.run(
            app,
            host=args.host or settings.server.host,
            port=args.port or settings.server.port,
            log_level="debug" if args.debug else "info",
        )
        return 0

    except Exception as e:
        logger.error(f"Server failed: {e}", exc_info=True)
        print(f"\n❌ Server failed: {e}\n")
        return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Estate Index listing sync and static site rebuild",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"estate-refresh {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_run = subparsers.add_parser(
        "run",
        help="Run sync and rebuild on a schedule, or once with --once",
    )
    parser_run.add_argument(
        "--once",
        action="store_true",
        help="Run the pipeline once then exit (exit code 1 on failure)",
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_run.add_argument("--content-dir", help="Override the listings content directory")
    parser_run.add_argument("--base-url", help="Override the published site base URL")
    parser_run.add_argument(
        "--timeout",
        type=float,
        help="Per-stage timeout in seconds",
    )
    parser_run.set_defaults(func=cmd_run)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Serve the cron trigger API",
    )
    parser_serve.add_argument("--host", help="Bind address")
    parser_serve.add_argument("--port", type=int, help="Bind port")
    parser_serve.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
