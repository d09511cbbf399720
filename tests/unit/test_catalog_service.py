"""Unit tests for CatalogService caching and AdminProductService."""

from unittest.mock import AsyncMock

import pytest

from src.sf_catalog.application.schemas import CreateProductRequest, ProductListParams
from src.sf_catalog.application.service import (
    AdminProductService,
    CatalogService,
    product_detail_key,
    product_list_key,
)
from src.sf_catalog.domain.models import Product
from src.sf_catalog.infrastructure.local_repository import LocalProductRepository
from src.sf_common.cache import QueryCache
from src.sf_common.errors import ValidationError
from src.sf_common.pagination import Page
from src.sf_common.storage import InMemoryStorage


def _make_product(product_id: str = "1", price: str = "10.00") -> Product:
    return Product(id=product_id, name="Burger", price=price)


class TestCatalogReads:
    @pytest.mark.asyncio
    async def test_list_cached_for_two_minutes(self, clock) -> None:  # noqa: ANN001
        source = AsyncMock()
        source.list_products.return_value = Page(data=[_make_product()], next_cursor=None)
        catalog = CatalogService(source, QueryCache(clock))

        await catalog.list_products()
        clock.advance(119)
        await catalog.list_products()
        clock.advance(1)
        await catalog.list_products()

        assert source.list_products.await_count == 2

    @pytest.mark.asyncio
    async def test_detail_cached_for_five_minutes(self, clock) -> None:  # noqa: ANN001
        source = AsyncMock()
        source.get_product.return_value = _make_product()
        catalog = CatalogService(source, QueryCache(clock))

        await catalog.get_product("1")
        clock.advance(299)
        await catalog.get_product("1")

        assert source.get_product.await_count == 1

    @pytest.mark.asyncio
    async def test_walk_products(self, clock) -> None:  # noqa: ANN001
        storage = InMemoryStorage()
        catalog = CatalogService(LocalProductRepository(storage, "ns"), QueryCache(clock))

        items = await catalog.walk_products(limit=3).collect_items()

        assert len(items) == 8


class TestCatalogWrites:
    @pytest.mark.asyncio
    async def test_create_invalidates_lists_and_seeds_detail(self, clock) -> None:  # noqa: ANN001
        source = AsyncMock()
        source.list_products.return_value = Page(data=[], next_cursor=None)
        source.create_product.return_value = _make_product("new")
        cache = QueryCache(clock)
        catalog = CatalogService(source, cache)
        await catalog.list_products()

        await catalog.create_product(CreateProductRequest(name="Burger", price="10"))

        assert not cache.is_fresh(product_list_key(ProductListParams()))
        assert cache.is_fresh(product_detail_key("new"))
        assert (await catalog.get_product("new")).id == "new"
        source.get_product.assert_not_awaited()

    def test_update_product_cache(self, clock) -> None:  # noqa: ANN001
        cache = QueryCache(clock)
        catalog = CatalogService(AsyncMock(), cache)
        cache.set(product_detail_key("1"), _make_product(), 300)

        updated = catalog.update_product_cache("1", price="12.00")

        assert updated is not None
        assert updated.price == "12.00"


class TestAdminProductService:
    def _make(self, clock) -> tuple[AdminProductService, CatalogService, QueryCache]:  # noqa: ANN001
        cache = QueryCache(clock)
        repo = LocalProductRepository(InMemoryStorage(), "ns")
        catalog = CatalogService(repo, cache)
        return AdminProductService(repo, catalog), catalog, cache

    @pytest.mark.asyncio
    async def test_create_validates(self, clock) -> None:  # noqa: ANN001
        admin, _, _ = self._make(clock)
        with pytest.raises(ValidationError) as exc_info:
            await admin.create(name="", price="-1")
        assert "fields" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_update_invalidates_catalog(self, clock) -> None:  # noqa: ANN001
        admin, catalog, cache = self._make(clock)
        await catalog.get_product("2")

        await admin.set_availability("2", False)

        assert not cache.is_fresh(product_detail_key("2"))
        assert not (await catalog.get_product("2")).available

    @pytest.mark.asyncio
    async def test_delete(self, clock) -> None:  # noqa: ANN001
        admin, catalog, _ = self._make(clock)
        await admin.delete("8")
        page = await catalog.list_products(ProductListParams(limit=100))
        assert "8" not in {p.id for p in page.data}

    @pytest.mark.asyncio
    async def test_search_and_categories(self, clock) -> None:  # noqa: ANN001
        admin, _, _ = self._make(clock)
        assert [p.id for p in await admin.search("sushi")] == ["3"]
        assert "Drinks" in await admin.categories()


class TestCatalogInvalidation:
    @pytest.mark.asyncio
    async def test_invalidate_product_refetches(self, clock) -> None:  # noqa: ANN001
        source = AsyncMock()
        source.get_product.return_value = _make_product()
        catalog = CatalogService(source, QueryCache(clock))
        await catalog.get_product("1")

        catalog.invalidate_product("1")
        await catalog.get_product("1")

        assert source.get_product.await_count == 2
