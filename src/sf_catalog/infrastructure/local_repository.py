# src/sf_catalog/infrastructure/local_repository.py
"""LocalProductRepository — product catalog persisted in the client key-value store.

The whole catalog lives under one key ({namespace}:products) as a JSON list;
an empty store is seeded with the starter menu on first access.
"""
import logging
import uuid
from dataclasses import replace

from src.sf_catalog.application.schemas import (
    CreateProductRequest,
    ProductListParams,
    ProductOut,
    UpdateProductRequest,
)
from src.sf_catalog.domain.models import Product
from src.sf_catalog.infrastructure.seed import SEED_PRODUCTS
from src.sf_common.datetime_utils import utc_now
from src.sf_common.enums import ProductSort
from src.sf_common.errors import NotFoundError
from src.sf_common.pagination import Page, paginate
from src.sf_common.storage import KeyValueStorage, namespaced

logger = logging.getLogger(__name__)


def _sort_key(product: Product) -> tuple[str, str]:
    created = product.created_at.isoformat() if product.created_at else ""
    return created, product.id


class LocalProductRepository:
    """Concrete implementation of ProductRepositoryProtocol over KeyValueStorage."""

    def __init__(
        self,
        storage: KeyValueStorage,
        namespace: str,
        seed: list[Product] | None = None,
    ) -> None:
        self._storage = storage
        self._key = namespaced(namespace, "products")
        self._seed = SEED_PRODUCTS if seed is None else seed

    async def _load(self) -> list[Product]:
        raw = await self._storage.get(self._key)
        if raw is None:
            logger.info("Seeding local catalog with %d products", len(self._seed))
            await self._save(self._seed)
            return list(self._seed)
        return [ProductOut.model_validate(item).to_domain() for item in raw]

    async def _save(self, products: list[Product]) -> None:
        await self._storage.set(
            self._key, [ProductOut.from_domain(p).to_wire() for p in products]
        )

    async def list_products(self, params: ProductListParams) -> Page[Product]:
        products = await self._load()
        return paginate(
            products,
            _sort_key,
            params.cursor,
            params.limit,
            descending=params.sort == ProductSort.CREATED_AT_DESC,
        )

    async def get_product(self, product_id: str) -> Product:
        for product in await self._load():
            if product.id == product_id:
                return product
        raise NotFoundError(f"Product not found: {product_id}")

    async def create_product(self, data: CreateProductRequest) -> Product:
        products = await self._load()
        now = utc_now()
        product = Product(
            id=str(uuid.uuid4()),
            name=data.name,
            price=data.price,
            created_at=now,
            updated_at=now,
            description=data.description,
            category=data.category,
            image_url=data.image_url,
            available=data.available,
        )
        products.append(product)
        await self._save(products)
        return product

    async def update_product(self, product_id: str, data: UpdateProductRequest) -> Product:
        products = await self._load()
        for index, product in enumerate(products):
            if product.id == product_id:
                changes = data.changes()
                updated = replace(product, **changes, updated_at=utc_now())
                products[index] = updated
                await self._save(products)
                return updated
        raise NotFoundError(f"Product not found: {product_id}")

    async def delete_product(self, product_id: str) -> None:
        products = await self._load()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            raise NotFoundError(f"Product not found: {product_id}")
        await self._save(remaining)

    async def search(self, query: str) -> list[Product]:
        needle = query.lower()
        return [
            p
            for p in await self._load()
            if needle in p.name.lower() or needle in p.description.lower()
        ]

    async def list_by_category(self, category: str) -> list[Product]:
        return [p for p in await self._load() if p.category == category]

    async def list_categories(self) -> list[str]:
        return sorted({p.category for p in await self._load() if p.category})
