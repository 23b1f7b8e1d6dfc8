from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any

from fastapi import FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from returns.pipeline import is_successful

from order_fulfillment.core.domain.model.errors import (
    CommitFailed,
    InsufficientStock,
    OrderError,
    OrderNotFound,
    ProductNotFound,
    ValidationError,
)
from order_fulfillment.core.domain.model.order import Product
from order_fulfillment.core.ports.inbound.commit_order import (
    CommitOrderUseCase,
    OrderRequest,
    RequestedItem,
)
from order_fulfillment.core.ports.inbound.get_order import (
    GetOrderQuery,
    GetOrderUseCase,
    OrderView,
)
from order_fulfillment.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from order_fulfillment.core.ports.inbound.manage_inventory import (
    AddProductCommand,
    ManageInventoryUseCase,
)
from order_fulfillment.core.ports.outbound.unit_of_work import Storage

logger = logging.getLogger(__name__)

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderItemIn(CamelModel):
    product_id: int = Field(examples=[1])
    quantity: int = Field(examples=[3])


class CreateOrderRequest(CamelModel):
    client_name: str = Field(examples=["Ivan Petrov"])
    client_email: str = Field(examples=["ivan@example.com"])
    client_phone: str | None = Field(default=None, examples=["+7 900 000-00-00"])
    items: list[OrderItemIn]


class OrderConfirmationResponse(CamelModel):
    order_id: int
    total_amount: float


class OrderLineOut(CamelModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float


class OrderDetailsResponse(CamelModel):
    order_id: int
    client_name: str
    client_email: str
    client_phone: str | None
    status: str
    total_amount: float
    created_at: datetime
    items: list[OrderLineOut]


class OrderListResponse(CamelModel):
    offset: int
    limit: int
    items: list[OrderDetailsResponse]


class CreateProductRequest(CamelModel):
    name: str = Field(examples=["Logitech mouse"])
    description: str = Field(default="", examples=["Wireless mouse"])
    price: Decimal = Field(examples=["1500.00"])
    category: str | None = Field(default=None, examples=["Accessories"])
    in_stock: int = Field(default=0, examples=[30])


class ProductResponse(CamelModel):
    id: int
    name: str
    description: str
    price: float
    category: str
    in_stock: int


class ErrorResponse(BaseModel):
    type: str
    message: str
    details: list[dict[str, Any]] | None = None


def _map_error_to_http(err: OrderError) -> tuple[int, ErrorResponse]:
    body = ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, (ValidationError, ProductNotFound)):
        return 400, body

    if isinstance(err, OrderNotFound):
        return 404, body

    if isinstance(err, InsufficientStock):
        return 409, body

    if isinstance(err, CommitFailed):
        return 503, body

    return 500, body


def _error_response(err: OrderError) -> JSONResponse:
    status, body = _map_error_to_http(err)
    return JSONResponse(status_code=status, content=body.model_dump())


def _to_details(view: OrderView) -> OrderDetailsResponse:
    return OrderDetailsResponse(
        order_id=view.order_id.value,
        client_name=view.client.name,
        client_email=view.client.email,
        client_phone=view.client.phone,
        status=view.status,
        total_amount=float(view.total_amount.amount),
        created_at=view.created_at,
        items=[
            OrderLineOut(
                product_id=ln.product_id,
                product_name=ln.product_name,
                quantity=ln.quantity,
                unit_price=float(ln.unit_price.amount),
                subtotal=float(ln.subtotal.amount),
            )
            for ln in view.lines
        ],
    )


def _to_product(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.product_id.value,
        name=product.name,
        description=product.description,
        price=float(product.unit_price.amount),
        category=product.category,
        in_stock=product.available_quantity,
    )


def create_app(
    commit_order_uc: CommitOrderUseCase,
    get_order_uc: GetOrderUseCase,
    list_orders_uc: ListOrdersUseCase,
    manage_inventory_uc: ManageInventoryUseCase,
    storage: Storage,
    title: str = "order_fulfillment",
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            yield
        finally:
            storage.close()

    app = FastAPI(title=title, lifespan=lifespan)

    # --- exception handlers --------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="RequestValidationError",
            message="invalid request",
            details=[{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()],
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(status_code=500, content=body.model_dump())

    # --- routes --------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/api/orders",
        response_model=OrderConfirmationResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    def create_order(req: CreateOrderRequest, response: Response) -> Any:
        result = commit_order_uc.commit(
            OrderRequest(
                client_name=req.client_name,
                client_email=req.client_email,
                client_phone=req.client_phone,
                items=tuple(
                    RequestedItem(product_id=it.product_id, quantity=it.quantity)
                    for it in req.items
                ),
            )
        )

        if is_successful(result):
            confirmation = result.unwrap()
            order_id = confirmation.order_id.value
            response.headers["Location"] = f"/api/orders/{order_id}"
            return OrderConfirmationResponse(
                order_id=order_id,
                total_amount=float(confirmation.total_amount.amount),
            )

        return _error_response(result.failure())

    @app.get(
        "/api/orders",
        response_model=OrderListResponse,
        responses={400: {"model": ErrorResponse}},
    )
    def list_orders(
        offset: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
    ) -> Any:
        result = list_orders_uc.list_orders(ListOrdersQuery(offset=offset, limit=limit))

        if is_successful(result):
            return OrderListResponse(
                offset=offset,
                limit=limit,
                items=[_to_details(v) for v in result.unwrap()],
            )

        return _error_response(result.failure())

    @app.get(
        "/api/orders/{order_id}",
        response_model=OrderDetailsResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    )
    def get_order(order_id: str) -> Any:
        result = get_order_uc.get_order(GetOrderQuery(order_id=order_id))

        if is_successful(result):
            return _to_details(result.unwrap())

        return _error_response(result.failure())

    @app.post(
        "/api/products",
        response_model=ProductResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}},
    )
    def create_product(req: CreateProductRequest) -> Any:
        result = manage_inventory_uc.add_product(
            AddProductCommand(
                name=req.name,
                unit_price=req.price,
                quantity=req.in_stock,
                description=req.description,
                category=req.category,
            )
        )

        if is_successful(result):
            return _to_product(result.unwrap())

        return _error_response(result.failure())

    return app
