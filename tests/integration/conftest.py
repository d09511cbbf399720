"""Integration-test fixtures.

A FastAPI stub of the storefront REST contract, backed by the local catalog
and order stores, is served in-process through httpx.ASGITransport. The
client-side stack (ApiClient, CatalogApi, OrderApi and everything above
them) talks to it exactly as it would to the real backend.
"""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import httpx
import pytest_asyncio
from fastapi import FastAPI, Header, Query, Request, Response
from fastapi.responses import JSONResponse

from src.sf_catalog.application.schemas import CreateProductRequest, ProductListParams, ProductOut
from src.sf_catalog.infrastructure.local_repository import LocalProductRepository
from src.sf_common.enums import ProductSort
from src.sf_common.errors import AppError
from src.sf_common.http_client import ApiClient
from src.sf_common.response import error_response, page_response
from src.sf_common.storage import InMemoryStorage
from src.sf_order.application.schemas import CreateOrderRequest, OrderListParams, OrderOut
from src.sf_order.infrastructure.local_backend import LocalOrderBackend

CATALOG_PREFIX = "/api/catalog/api/v1"
ORDER_PREFIX = "/api/order/api/v1"


def build_stub_app() -> FastAPI:
    storage = InMemoryStorage()
    products = LocalProductRepository(storage, "stub")
    orders = LocalOrderBackend(storage, "stub", products)

    app = FastAPI(title="storefront-stub")
    app.state.products = products
    app.state.orders = orders
    app.state.fail_next = 0
    app.state.requests = []

    @app.middleware("http")
    async def record_and_fail(request: Request, call_next):  # noqa: ANN001, ANN202
        app.state.requests.append(
            (request.method, request.url.path, request.headers.get("Idempotency-Key"))
        )
        if app.state.fail_next > 0:
            app.state.fail_next -= 1
            body = error_response("service_unavailable", "Service unavailable")
            return JSONResponse(status_code=503, content=body.model_dump())
        return await call_next(request)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        resp = error_response(exc.code, exc.message, exc.details)
        return JSONResponse(status_code=exc.http_status, content=resp.model_dump())

    @app.get(f"{CATALOG_PREFIX}/products")
    async def list_products(
        limit: int = Query(20, ge=1, le=100),
        cursor: str | None = None,
        sort: ProductSort = ProductSort.CREATED_AT_DESC,
    ) -> dict:
        page = await products.list_products(ProductListParams(limit=limit, cursor=cursor, sort=sort))
        return page_response([ProductOut.from_domain(p).to_wire() for p in page.data], page.next_cursor)

    @app.get(f"{CATALOG_PREFIX}/products/{{product_id}}")
    async def get_product(product_id: str) -> dict:
        return ProductOut.from_domain(await products.get_product(product_id)).to_wire()

    @app.post(f"{CATALOG_PREFIX}/products", status_code=201)
    async def create_product(body: CreateProductRequest) -> dict:
        return ProductOut.from_domain(await products.create_product(body)).to_wire()

    @app.post(f"{ORDER_PREFIX}/orders", status_code=202)
    async def create_order(
        body: CreateOrderRequest,
        idempotency_key: str = Header(alias="Idempotency-Key"),
    ) -> dict:
        return (await orders.create_order(body, idempotency_key)).to_wire()

    @app.get(f"{ORDER_PREFIX}/orders")
    async def list_orders(limit: int = Query(20, ge=1, le=100), cursor: str | None = None) -> dict:
        page = await orders.list_orders(OrderListParams(limit=limit, cursor=cursor))
        return page_response([OrderOut.from_domain(o).to_wire() for o in page.data], page.next_cursor)

    @app.get(f"{ORDER_PREFIX}/orders/{{order_id}}")
    async def get_order(order_id: str) -> dict:
        return OrderOut.from_domain(await orders.get_order(order_id)).to_wire()

    @app.get("/health")
    async def health() -> Response:
        return Response(status_code=204)

    return app


@pytest_asyncio.fixture
async def stub_app() -> FastAPI:
    return build_stub_app()


@pytest_asyncio.fixture
async def api_client(stub_app: FastAPI) -> AsyncIterator[ApiClient]:
    """ApiClient bound to the stub; backoff sleeps are recorded, not waited."""
    client = ApiClient(
        "http://test",
        transport=httpx.ASGITransport(app=stub_app),
        sleep=AsyncMock(),
    )
    async with client:
        yield client
