"""
Redis-backed session delegate.

Stores the logged in user id under ``<key_prefix><auth_name>``. Useful when
several processes serve the same session, e.g. a key prefix built from a
request's session cookie.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Any, Callable, Optional
import logging

import redis.asyncio as redis

from .types import SessionDelegate


logger = logging.getLogger(__name__)


class RedisSession(SessionDelegate):
    """
    Session delegate on top of a ``redis.asyncio`` client.

    Redis hands values back as strings (or bytes), so ``id_type`` converts
    the stored value back into a user id.
    """

    def __init__(
        self,
        client: Any,
        key_prefix: str = "tollgate:session:",
        ttl: Optional[int] = None,
        id_type: Callable[[str], Any] = str
    ):
        """
        Initialize the session.

        Args:
            client: Redis async client instance
            key_prefix: Prefix for Redis keys
            ttl: Session expiry in seconds, or None for no expiry
            id_type: Callable turning the stored string back into a user id
        """
        self.client = client
        self.key_prefix = key_prefix
        self.ttl = ttl
        self.id_type = id_type

    @classmethod
    def from_url(cls, url: str, **kwargs) -> 'RedisSession':
        """Create a session backed by a new client for ``url``."""
        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, auth_name: str) -> str:
        return f"{self.key_prefix}{auth_name}"

    async def write(self, auth_name: str, user_id: Any) -> None:
        await self.client.set(self._key(auth_name), str(user_id), ex=self.ttl)
        logger.debug(f"Wrote session {self._key(auth_name)}")

    async def read(self, auth_name: str) -> Optional[Any]:
        value = await self.client.get(self._key(auth_name))
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return self.id_type(value)

    async def delete(self, auth_name: str) -> None:
        await self.client.delete(self._key(auth_name))
        logger.debug(f"Deleted session {self._key(auth_name)}")

    async def close(self) -> None:
        """Close the underlying client."""
        await self.client.aclose()
