"""
Per-user cache of resolved permission maps.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Any, Dict, Optional
import threading
import logging

from .types import ResolvedPermissions


logger = logging.getLogger(__name__)


class PermissionCache:
    """
    Write-through cache of resolved permissions, keyed by user id.

    Entries have no TTL; they live until overwritten, invalidated or the
    process ends. Entries are immutable snapshots that are swapped in under
    the lock, so a reader sees either the previous map or the new one.
    """

    def __init__(self):
        self._entries: Dict[Any, ResolvedPermissions] = {}
        self._lock = threading.RLock()

    def get(self, user_id: Any) -> Optional[ResolvedPermissions]:
        """Return the cached entry for a user, or None on a miss."""
        with self._lock:
            return self._entries.get(user_id)

    def put(self, user_id: Any, entry: ResolvedPermissions) -> None:
        with self._lock:
            self._entries[user_id] = entry
        logger.debug(f"Cached {len(entry)} permissions for user {user_id}")

    def invalidate(self, user_id: Any) -> bool:
        """Drop a user's entry. Returns True if there was one."""
        with self._lock:
            return self._entries.pop(user_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, user_id: Any) -> bool:
        with self._lock:
            return user_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
