"""
pumpwatch command-line tool.

Usage:
    pumpwatch serve --host 0.0.0.0 --port 8000
    pumpwatch init-db
    pumpwatch register 01xd02m25 01xd02m26
    pumpwatch devices
    pumpwatch sweep
    pumpwatch status 01xd02m25

All commands read the same environment variables as the API (DATABASE_URL,
SESSION_TIMEOUT_S, ...). ``status`` never closes sessions; ``sweep`` does.

CHANGELOG:
- 2026-10-18: Initial creation
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.db.session import create_all, create_engine, create_session_factory
from pumpwatch.errors import PumpwatchError
from pumpwatch.logging_config import configure_logging
from pumpwatch.services.locks import DeviceLocks
from pumpwatch.services.registry import register_devices
from pumpwatch.services.status import peek_status
from pumpwatch.services.sweep import sweep_overdue_sessions

logger = logging.getLogger(__name__)


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    try:
        if args.command == "init-db":
            await create_all(engine)
            print("Tables created.")
        elif args.command == "register":
            added = await register_devices(session_factory, args.device_ids)
            print(f"Registered {len(added)} new device(s).")
        elif args.command == "devices":
            async with session_factory() as db:
                store = DeviceStore(db)
                async with store.transaction():
                    device_ids = await store.list_devices()
            for device_id in device_ids:
                print(device_id)
        elif args.command == "sweep":
            compiled = await sweep_overdue_sessions(
                session_factory, DeviceLocks(), settings
            )
            print(f"Compiled {compiled} event(s).")
        elif args.command == "status":
            async with session_factory() as db:
                result = await peek_status(DeviceStore(db), args.device_id, settings)
            print(
                json.dumps(
                    {
                        "device": args.device_id,
                        "status": result.status,
                        "gap_seconds": result.gap_seconds,
                        "buffered_samples": len(result.buffer),
                    }
                )
            )
    except PumpwatchError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="pumpwatch",
        description="Pump run-event tracking service.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    sub.add_parser("init-db", help="Create database tables (SQLite installs)")

    register = sub.add_parser("register", help="Add device ids to the registry")
    register.add_argument("device_ids", nargs="+", metavar="DEVICE_ID")

    sub.add_parser("devices", help="List registered device ids")
    sub.add_parser("sweep", help="Close every overdue session once")

    status = sub.add_parser("status", help="Show a device's status (read-only)")
    status.add_argument("device_id", metavar="DEVICE_ID")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``pumpwatch`` console script."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("pumpwatch.api.main:app", host=args.host, port=args.port, log_config=None)
        return 0

    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
