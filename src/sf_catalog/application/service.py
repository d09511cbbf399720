"""CatalogService — cached product reads over a ProductSource.

Staleness: product lists 2 min, product detail 5 min (configurable).
Creating a product busts every list query and seeds the detail entry.
"""

import logging
from typing import Any

import pydantic

from src.sf_catalog.application.schemas import (
    CreateProductRequest,
    ProductListParams,
    UpdateProductRequest,
)
from src.sf_catalog.domain.models import Product
from src.sf_catalog.domain.repository import ProductRepositoryProtocol, ProductSource
from src.sf_common.cache import CacheKey, QueryCache, query_key
from src.sf_common.enums import ProductSort
from src.sf_common.errors import ValidationError
from src.sf_common.pagination import CursorPaginationWalker, Page

logger = logging.getLogger(__name__)

PRODUCTS_ROOT: CacheKey = ("products",)
PRODUCT_LISTS: CacheKey = ("products", "list")


def product_list_key(params: ProductListParams) -> CacheKey:
    return query_key(*PRODUCT_LISTS, params=params.to_query())


def product_detail_key(product_id: str) -> CacheKey:
    return ("products", "detail", product_id)


def _validation_error(exc: pydantic.ValidationError) -> ValidationError:
    fields = {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
    return ValidationError("Invalid product data", {"fields": fields})


class CatalogService:
    def __init__(
        self,
        source: ProductSource,
        cache: QueryCache,
        list_stale_after: float = 120.0,
        detail_stale_after: float = 300.0,
    ) -> None:
        self._source = source
        self._cache = cache
        self._list_stale_after = list_stale_after
        self._detail_stale_after = detail_stale_after

    async def list_products(self, params: ProductListParams | None = None) -> Page[Product]:
        params = params or ProductListParams()
        return await self._cache.fetch(
            product_list_key(params),
            lambda: self._source.list_products(params),
            self._list_stale_after,
        )

    async def get_product(self, product_id: str) -> Product:
        return await self._cache.fetch(
            product_detail_key(product_id),
            lambda: self._source.get_product(product_id),
            self._detail_stale_after,
        )

    def walk_products(
        self, limit: int = 20, sort: ProductSort = ProductSort.CREATED_AT_DESC
    ) -> CursorPaginationWalker[Product]:
        """Infinite-scroll walk; every page goes through the list cache."""

        async def fetch_page(cursor: str | None) -> Page[Product]:
            return await self.list_products(
                ProductListParams(limit=limit, cursor=cursor, sort=sort)
            )

        return CursorPaginationWalker(fetch_page)

    async def create_product(self, data: CreateProductRequest) -> Product:
        product = await self._source.create_product(data)
        self._cache.invalidate_prefix(PRODUCT_LISTS)
        self._cache.set(product_detail_key(product.id), product, self._detail_stale_after)
        logger.info("Created product %s", product.id)
        return product

    def update_product_cache(self, product_id: str, **fields: Any) -> Product | None:
        return self._cache.patch(product_detail_key(product_id), **fields)

    def invalidate_product(self, product_id: str) -> None:
        self._cache.invalidate(product_detail_key(product_id))

    def invalidate_all(self) -> None:
        self._cache.invalidate_prefix(PRODUCTS_ROOT)


class AdminProductService:
    """Product management console operations (local store only)."""

    def __init__(self, repo: ProductRepositoryProtocol, catalog: CatalogService) -> None:
        self._repo = repo
        self._catalog = catalog

    async def create(self, **fields: Any) -> Product:
        try:
            data = CreateProductRequest(**fields)
        except pydantic.ValidationError as exc:
            raise _validation_error(exc) from exc
        return await self._catalog.create_product(data)

    async def update(self, product_id: str, **fields: Any) -> Product:
        try:
            data = UpdateProductRequest(**fields)
        except pydantic.ValidationError as exc:
            raise _validation_error(exc) from exc
        product = await self._repo.update_product(product_id, data)
        self._catalog.invalidate_all()
        return product

    async def delete(self, product_id: str) -> None:
        await self._repo.delete_product(product_id)
        self._catalog.invalidate_all()
        logger.info("Deleted product %s", product_id)

    async def set_availability(self, product_id: str, available: bool) -> Product:
        return await self.update(product_id, available=available)

    async def categories(self) -> list[str]:
        return await self._repo.list_categories()

    async def search(self, query: str) -> list[Product]:
        return await self._repo.search(query)
