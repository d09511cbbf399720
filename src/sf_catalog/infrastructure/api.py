# src/sf_catalog/infrastructure/api.py
"""CatalogApi — REST implementation of ProductSource.

Endpoints (prefix defaults to /api/catalog/api/v1):
  GET  /products?limit=&cursor=&sort=   -> {data: Product[], meta: {nextCursor}}
  GET  /products/{id}                   -> Product
  POST /products                        -> Product (admin)
"""

from src.sf_catalog.application.schemas import (
    CreateProductRequest,
    ProductListParams,
    ProductOut,
)
from src.sf_catalog.domain.models import Product
from src.sf_common.http_client import ApiClient
from src.sf_common.pagination import Page
from src.sf_common.response import PaginatedResponse


class CatalogApi:
    def __init__(self, client: ApiClient, prefix: str = "/api/catalog/api/v1") -> None:
        self._client = client
        self._prefix = prefix.rstrip("/")

    async def list_products(self, params: ProductListParams) -> Page[Product]:
        payload = await self._client.get(f"{self._prefix}/products", params=params.to_query())
        response = PaginatedResponse[ProductOut].model_validate(payload)
        return response.to_page(ProductOut.to_domain)

    async def get_product(self, product_id: str) -> Product:
        payload = await self._client.get(f"{self._prefix}/products/{product_id}")
        return ProductOut.model_validate(payload).to_domain()

    async def create_product(self, data: CreateProductRequest) -> Product:
        payload = await self._client.post(f"{self._prefix}/products", json=data.to_api_body())
        return ProductOut.model_validate(payload).to_domain()
