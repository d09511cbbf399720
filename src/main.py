"""Application context: explicit wiring of the storefront client core.

    async with build_context() as ctx:
        page = await ctx.catalog.list_products()
        await ctx.cart.add_item(page.data[0], 2)
        result = await ctx.checkout.checkout()

Every collaborator is constructed here and passed down; nothing is looked
up from module globals at call time.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from config.settings import Settings, settings as default_settings
from src.sf_cart.application.service import CartService
from src.sf_catalog.application.service import AdminProductService, CatalogService
from src.sf_catalog.domain.repository import ProductSource
from src.sf_catalog.infrastructure.api import CatalogApi
from src.sf_catalog.infrastructure.local_repository import LocalProductRepository
from src.sf_common.auth import AuthTokenStore
from src.sf_common.cache import QueryCache
from src.sf_common.enums import DataSource, StorageBackend
from src.sf_common.http_client import ApiClient, RetryPolicy
from src.sf_common.redis_client import close_redis, get_redis
from src.sf_common.scheduler import AsyncioScheduler
from src.sf_common.storage import InMemoryStorage, KeyValueStorage, RedisStorage
from src.sf_idempotency.service import IdempotencyKeyManager
from src.sf_order.application.checkout import CheckoutService
from src.sf_order.application.polling import OrderPollingEngine
from src.sf_order.application.read_model import OrderReadModel
from src.sf_order.application.submission import OrderSubmissionFlow
from src.sf_order.domain.repository import OrderSource
from src.sf_order.infrastructure.api import OrderApi
from src.sf_order.infrastructure.local_backend import LocalOrderBackend

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
    # httpx logs every request at INFO; sf.request already does
    logging.getLogger("httpx").setLevel(logging.WARNING)


@dataclass
class AppContext:
    settings: Settings
    storage: KeyValueStorage
    token_store: AuthTokenStore
    cache: QueryCache
    keys: IdempotencyKeyManager
    catalog: CatalogService
    orders: OrderReadModel
    submission: OrderSubmissionFlow
    polling: OrderPollingEngine
    cart: CartService
    checkout: CheckoutService
    scheduler: AsyncioScheduler
    client: ApiClient | None = None
    admin: AdminProductService | None = None
    local_orders: LocalOrderBackend | None = None

    async def close(self) -> None:
        await self.polling.close()
        await self.scheduler.drain()
        if self.client is not None:
            await self.client.aclose()
        if self.settings.STORAGE_BACKEND == StorageBackend.REDIS:
            await close_redis()


async def _build_storage(cfg: Settings) -> KeyValueStorage:
    backend = StorageBackend(cfg.STORAGE_BACKEND)
    if backend == StorageBackend.REDIS:
        return RedisStorage(await get_redis())
    return InMemoryStorage()


async def create_context(cfg: Settings | None = None) -> AppContext:
    cfg = cfg or default_settings
    namespace = cfg.STORAGE_NAMESPACE
    storage = await _build_storage(cfg)
    token_store = AuthTokenStore(storage, namespace)
    cache = QueryCache()
    scheduler = AsyncioScheduler()

    client: ApiClient | None = None
    admin_repo: LocalProductRepository | None = None
    local_orders: LocalOrderBackend | None = None
    products: ProductSource
    order_source: OrderSource

    if DataSource(cfg.DATA_SOURCE) == DataSource.API:
        client = ApiClient(
            cfg.API_BASE_URL,
            timeout=cfg.API_TIMEOUT_SECONDS,
            retry=RetryPolicy(
                max_attempts=cfg.API_MAX_ATTEMPTS,
                base_delay=cfg.API_RETRY_BASE_DELAY,
                max_delay=cfg.API_RETRY_MAX_DELAY,
            ),
            token_store=token_store,
        )
        products = CatalogApi(client, cfg.CATALOG_PREFIX)
        order_source = OrderApi(client, cfg.ORDER_PREFIX)
    else:
        admin_repo = LocalProductRepository(storage, namespace)
        local_orders = LocalOrderBackend(storage, namespace, admin_repo)
        products = admin_repo
        order_source = local_orders

    catalog = CatalogService(
        products,
        cache,
        list_stale_after=cfg.PRODUCT_LIST_STALE_SECONDS,
        detail_stale_after=cfg.PRODUCT_DETAIL_STALE_SECONDS,
    )
    orders = OrderReadModel(
        order_source,
        cache,
        list_stale_after=cfg.ORDER_LIST_STALE_SECONDS,
        detail_stale_after=cfg.ORDER_DETAIL_STALE_SECONDS,
    )
    keys = IdempotencyKeyManager(storage, namespace, ttl_seconds=cfg.IDEMPOTENCY_TTL_SECONDS)
    submission = OrderSubmissionFlow(order_source, keys, orders)
    polling = OrderPollingEngine(orders, scheduler, interval=cfg.ORDER_POLL_INTERVAL_SECONDS)
    cart = CartService(storage, namespace)

    logger.info(
        "%s ready (data_source=%s, storage=%s)",
        cfg.APP_NAME,
        cfg.DATA_SOURCE,
        cfg.STORAGE_BACKEND,
    )
    return AppContext(
        settings=cfg,
        storage=storage,
        token_store=token_store,
        cache=cache,
        keys=keys,
        catalog=catalog,
        orders=orders,
        submission=submission,
        polling=polling,
        cart=cart,
        checkout=CheckoutService(cart, submission, polling),
        scheduler=scheduler,
        client=client,
        admin=AdminProductService(admin_repo, catalog) if admin_repo is not None else None,
        local_orders=local_orders,
    )


@asynccontextmanager
async def build_context(cfg: Settings | None = None) -> AsyncIterator[AppContext]:
    """Startup: wire collaborators and sweep expired idempotency keys. Shutdown: close."""
    ctx = await create_context(cfg)
    await ctx.keys.sweep_expired()
    try:
        yield ctx
    finally:
        await ctx.close()
