"""Bearer token store — the session collaborator the HTTP client reads from.

The token is cleared when the backend answers 401.
"""

import logging

from src.sf_common.errors import StorageError
from src.sf_common.storage import KeyValueStorage, namespaced

logger = logging.getLogger(__name__)


class AuthTokenStore:
    def __init__(self, storage: KeyValueStorage, namespace: str) -> None:
        self._storage = storage
        self._key = namespaced(namespace, "auth-token")

    async def get_token(self) -> str | None:
        try:
            token = await self._storage.get(self._key)
        except StorageError as exc:
            logger.warning("Failed to read auth token: %s", exc.message)
            return None
        return str(token) if token else None

    async def set_token(self, token: str) -> None:
        await self._storage.set(self._key, token)

    async def clear_token(self) -> None:
        try:
            await self._storage.delete(self._key)
        except StorageError as exc:
            logger.error("Failed to clear auth token: %s", exc.message)
