"""Idempotency key record — pure dataclass, no storage dependency."""
from dataclasses import dataclass
from typing import Any

MIN_KEY_LENGTH = 8
MAX_KEY_LENGTH = 128


@dataclass
class IdempotencyRecord:
    key: str
    created_at: float  # epoch seconds
    order_id: str | None = None

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at >= ttl_seconds

    @property
    def is_associated(self) -> bool:
        return self.order_id is not None

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "created_at": self.created_at, "order_id": self.order_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IdempotencyRecord":
        return cls(
            key=data["key"],
            created_at=float(data["created_at"]),
            order_id=data.get("order_id"),
        )


def is_valid_key(key: object) -> bool:
    """Pure length check: 8 <= len(key) <= 128."""
    return isinstance(key, str) and MIN_KEY_LENGTH <= len(key) <= MAX_KEY_LENGTH
