"""Ledger main entry point."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from milk_ledger.service.logging import configure_logging


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ledger service."""
    parser = argparse.ArgumentParser(
        prog="milk-ledger",
        description="Milk Ledger - daily delivery book-keeping service",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("LEDGER_PORT", "8080")),
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--store",
        choices=["json", "sqlite", "memory"],
        help="State store backend (default: LEDGER_STORE_BACKEND or json)",
    )
    parser.add_argument(
        "--store-path",
        help="Path of the json document or sqlite database",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Force JSON log output (default: auto-detect)",
    )

    args = parser.parse_args(argv)

    configure_logging(
        level=args.log_level.upper(),
        json_output=args.json_logs if args.json_logs else None,
    )

    # The app factory reads its configuration from the environment
    if args.store:
        os.environ["LEDGER_STORE_BACKEND"] = args.store
    if args.store_path:
        os.environ["LEDGER_STORE_PATH"] = args.store_path
    os.environ["LEDGER_PORT"] = str(args.port)

    try:
        uvicorn.run(
            "milk_ledger.service.app:create_app_from_env",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=args.log_level,
            factory=True,
        )
        return 0
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0


if __name__ == "__main__":
    sys.exit(main())
