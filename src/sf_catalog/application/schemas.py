from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from src.sf_catalog.domain.models import Product
from src.sf_common.enums import ProductSort
from src.sf_common.money import format_money, validate_price
from src.sf_common.response import CamelModel


class ProductOut(CamelModel):
    id: str
    name: str
    price: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    description: str = ""
    category: str = ""
    image_url: str = ""
    available: bool = True

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, v: Any) -> str:
        return format_money(v)

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            price=self.price,
            created_at=self.created_at,
            updated_at=self.updated_at,
            description=self.description,
            category=self.category,
            image_url=self.image_url,
            available=self.available,
        )

    @classmethod
    def from_domain(cls, product: Product) -> "ProductOut":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            created_at=product.created_at,
            updated_at=product.updated_at,
            description=product.description,
            category=product.category,
            image_url=product.image_url,
            available=product.available,
        )


class CreateProductRequest(CamelModel):
    name: str = Field(min_length=1)
    price: str
    description: str = ""
    category: str = ""
    image_url: str = ""
    available: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()

    @field_validator("price", mode="before")
    @classmethod
    def positive_price(cls, v: Any) -> str:
        return validate_price(str(v))

    def to_api_body(self) -> dict[str, Any]:
        """The REST catalog only accepts name and price."""
        return {"name": self.name, "price": self.price}


class UpdateProductRequest(CamelModel):
    name: str | None = None
    price: str | None = None
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    available: bool | None = None

    @field_validator("price", mode="before")
    @classmethod
    def positive_price(cls, v: Any) -> str | None:
        return None if v is None else validate_price(str(v))

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProductListParams(CamelModel):
    limit: int = Field(default=20, ge=1, le=100)
    cursor: str | None = None
    sort: ProductSort = ProductSort.CREATED_AT_DESC

    def to_query(self) -> dict[str, Any]:
        return {"limit": self.limit, "cursor": self.cursor, "sort": self.sort.value}
