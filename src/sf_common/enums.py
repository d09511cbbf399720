"""Global enums — values must match the backend API contract exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_ORDER_STATUSES


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.FAILED})
PENDING_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


class ProductSort(str, Enum):
    CREATED_AT_DESC = "created_at_desc"
    CREATED_AT_ASC = "created_at_asc"


class DataSource(str, Enum):
    API = "api"
    LOCAL = "local"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"
