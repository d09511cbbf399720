"""Unified API response shapes.

Paginated list endpoints return:
{
    "data": [ ... ],
    "meta": {"nextCursor": "<opaque>" | null}   // null on the last page
}

Error responses return:
{
    "code": "not_found",
    "message": "Order not found",
    "details": { ... }   // optional
}
"""

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.sf_common.pagination import Page

T = TypeVar("T")
D = TypeVar("D")


class CamelModel(BaseModel):
    """Base for wire schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class PageMeta(CamelModel):
    next_cursor: str | None = None


class PaginatedResponse(CamelModel, Generic[T]):
    data: list[T]
    meta: PageMeta = PageMeta()

    def to_page(self, convert: Callable[[T], D]) -> Page[D]:
        return Page(data=[convert(item) for item in self.data], next_cursor=self.meta.next_cursor)


class ApiErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


def page_response(data: list[dict[str, Any]], next_cursor: str | None) -> dict[str, Any]:
    return {"data": data, "meta": {"nextCursor": next_cursor}}


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> ApiErrorBody:
    return ApiErrorBody(code=code, message=message, details=details)
