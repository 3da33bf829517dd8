from __future__ import annotations

import argparse
import sys

import uvicorn

from order_commit.adapters.inbound.cli import run_cli
from order_commit.bootstrap import build_usecases
from order_commit.config import Settings
from order_commit.utils.logging import configure_logging


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="order-commit")
    sub = parser.add_subparsers(dest="command", required=True)

    checkout = sub.add_parser("checkout", help="place one order from a JSON payload")
    checkout.add_argument("payload", help="checkout request as a JSON string")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(sys.argv[1:] if argv is None else argv)
    settings = Settings.from_env()
    configure_logging(settings)

    if args.command == "serve":
        uvicorn.run(
            "order_commit.asgi:create_asgi_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=False,
        )
        return 0

    usecases = build_usecases(settings)
    return run_cli(usecases.place_order, args.payload)


if __name__ == "__main__":
    raise SystemExit(main())
