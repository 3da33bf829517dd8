from __future__ import annotations

from fastapi import FastAPI

from order_commit.adapters.inbound.web.fastapi_app import create_app
from order_commit.bootstrap import build_usecases
from order_commit.config import Settings
from order_commit.utils.logging import configure_logging


def create_asgi_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    usecases = build_usecases(settings)
    return create_app(
        usecases.place_order,
        usecases.get_order,
        usecases.list_orders,
        usecases.manage_order,
        usecases.manage_order,
    )
