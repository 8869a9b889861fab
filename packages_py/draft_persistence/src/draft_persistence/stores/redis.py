"""
Redis draft store implementation
Suitable for drafts shared across processes/servers
"""
from typing import Any, Optional, Protocol

from ..types import DraftStore


class RedisClientProtocol(Protocol):
    """Protocol for Redis client (compatible with redis-py sync)"""

    def get(self, name: str) -> Any:
        ...

    def set(self, name: str, value: str) -> Any:
        ...

    def delete(self, *names: str) -> int:
        ...


class RedisDraftStore(DraftStore):
    """
    Redis implementation of DraftStore.
    """

    def __init__(
        self, client: RedisClientProtocol, key_prefix: str = "practice:"
    ) -> None:
        """
        Create a new RedisDraftStore.

        Args:
            client: Redis client (sync redis-py instance)
            key_prefix: Prefix for all keys. Default: 'practice:'
        """
        self._client = client
        self._key_prefix = key_prefix

    def _get_key(self, key: str) -> str:
        """Get the full key with prefix"""
        return f"{self._key_prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        """Get a stored value, or None if absent"""
        value = self._client.get(self._get_key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str) -> None:
        """Store a value"""
        self._client.set(self._get_key(key), value)

    def delete(self, key: str) -> None:
        """Remove a value"""
        self._client.delete(self._get_key(key))


def create_redis_draft_store(
    client: RedisClientProtocol, key_prefix: str = "practice:"
) -> RedisDraftStore:
    """
    Create a new RedisDraftStore instance.

    Args:
        client: Redis client (sync redis-py instance)
        key_prefix: Prefix for all keys

    Returns:
        RedisDraftStore instance
    """
    return RedisDraftStore(client, key_prefix)
