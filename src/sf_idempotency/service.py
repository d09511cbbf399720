"""
Idempotency Key Manager
Generates, persists and expires client-side dedup keys for order creation.

A retried "create order" carries the same Idempotency-Key header so the
backend recognises it as the same logical operation. The backend is the
source of truth for deduplication; this table is a best-effort client
record, so storage failures degrade to a logged no-op and never abort a
submission.

Storage layout: one JSON record per key under
    {namespace}:idempotency-keys:{key}
"""

import base64
import logging
import uuid

from src.sf_common.datetime_utils import Clock, wall_clock
from src.sf_common.errors import IdempotencyKeyReassignedError, StorageError
from src.sf_common.storage import KeyValueStorage, namespaced
from src.sf_idempotency.domain.models import (
    MAX_KEY_LENGTH,
    IdempotencyRecord,
    is_valid_key,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class IdempotencyKeyManager:
    def __init__(
        self,
        storage: KeyValueStorage,
        namespace: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = wall_clock,
    ) -> None:
        self._storage = storage
        self._prefix = namespaced(namespace, "idempotency-keys") + ":"
        self._ttl = ttl_seconds
        self._clock = clock

    # ------------------------------------------------------------------
    # Key generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate() -> str:
        """UUID4 string, 36 characters (always within 8-128)."""
        return str(uuid.uuid4())

    def generate_for_order(self, product_id: str, quantity: int) -> str:
        """Content-derived key: order-<b64(product:quantity:timestamp_ms)>."""
        content = f"{product_id}:{quantity}:{int(self._clock() * 1000)}"
        encoded = base64.urlsafe_b64encode(content.encode()).decode().rstrip("=")
        return f"order-{encoded}"[:MAX_KEY_LENGTH]

    @staticmethod
    def is_valid_key(key: object) -> bool:
        return is_valid_key(key)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def store(self, key: str, order_id: str | None = None) -> None:
        """Create the record for ``key`` or bind it to ``order_id``.

        Keys are not length-checked here; that happens where a key is sent to
        a backend. Raises IdempotencyKeyReassignedError when the key is
        already bound to a different order id. Storage failures are logged and
        swallowed.
        """
        try:
            now = self._clock()
            existing = await self._load(key)
            if existing is not None and existing.is_expired(now, self._ttl):
                existing = None

            if existing is not None and existing.order_id is not None:
                if order_id is not None and order_id != existing.order_id:
                    raise IdempotencyKeyReassignedError(key, existing.order_id, order_id)
                return

            record = IdempotencyRecord(
                key=key,
                created_at=existing.created_at if existing is not None else now,
                order_id=order_id,
            )
            await self._storage.set(self._storage_key(key), record.to_dict())
        except StorageError as exc:
            logger.warning("Failed to store idempotency key %s: %s", key, exc.message)

    async def lookup(self, key: str) -> IdempotencyRecord | None:
        """Return the live record for ``key``; expired records read as absent."""
        try:
            record = await self._load(key)
            if record is None:
                return None
            if record.is_expired(self._clock(), self._ttl):
                logger.info("Idempotency key expired: %s", key)
                await self._storage.delete(self._storage_key(key))
                return None
            return record
        except StorageError as exc:
            logger.warning("Failed to get idempotency key %s: %s", key, exc.message)
            return None

    async def has_used(self, key: str) -> bool:
        record = await self.lookup(key)
        return record is not None and record.is_associated

    async def sweep_expired(self) -> int:
        """Delete all records past the retention window. Returns how many were removed."""
        removed = 0
        now = self._clock()
        try:
            for storage_key in await self._storage.keys(self._prefix):
                record = await self._load(storage_key[len(self._prefix):])
                if record is None or record.is_expired(now, self._ttl):
                    await self._storage.delete(storage_key)
                    removed += 1
        except StorageError as exc:
            logger.warning("Idempotency sweep aborted after %d removals: %s", removed, exc.message)
        if removed:
            logger.info("Swept %d expired idempotency keys", removed)
        return removed

    async def clear(self) -> None:
        try:
            for storage_key in await self._storage.keys(self._prefix):
                await self._storage.delete(storage_key)
        except StorageError as exc:
            logger.warning("Failed to clear idempotency keys: %s", exc.message)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _storage_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def _load(self, key: str) -> IdempotencyRecord | None:
        raw = await self._storage.get(self._storage_key(key))
        if raw is None:
            return None
        try:
            return IdempotencyRecord.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding corrupt idempotency record for %s", key)
            return None
