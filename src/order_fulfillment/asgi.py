from __future__ import annotations

from fastapi import FastAPI

from order_fulfillment.adapters.inbound.web.fastapi_app import create_app
from order_fulfillment.bootstrap import build_usecases
from order_fulfillment.config import Settings, get_settings
from order_fulfillment.logging import configure_logging


def create_asgi_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    usecases = build_usecases(settings)
    return create_app(
        usecases.commit_order,
        usecases.get_order,
        usecases.list_orders,
        usecases.manage_inventory,
        usecases.storage,
        title=settings.app_name,
    )
