# src/sf_catalog/domain/repository.py
"""Catalog source protocols — implemented by the REST client and the local store."""
from typing import Protocol

from src.sf_catalog.application.schemas import (
    CreateProductRequest,
    ProductListParams,
    UpdateProductRequest,
)
from src.sf_catalog.domain.models import Product
from src.sf_common.pagination import Page


class ProductSource(Protocol):
    async def list_products(self, params: ProductListParams) -> Page[Product]: ...

    async def get_product(self, product_id: str) -> Product: ...

    async def create_product(self, data: CreateProductRequest) -> Product: ...


class ProductRepositoryProtocol(ProductSource, Protocol):
    """Admin-capable source; only the local store supports edits."""

    async def update_product(self, product_id: str, data: UpdateProductRequest) -> Product: ...

    async def delete_product(self, product_id: str) -> None: ...

    async def search(self, query: str) -> list[Product]: ...

    async def list_by_category(self, category: str) -> list[Product]: ...

    async def list_categories(self) -> list[str]: ...
