"""
In-memory session delegate.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Any, Dict, Optional
import threading

from .types import SessionDelegate


class MemorySession(SessionDelegate):
    """Session kept in a dict, one slot per Auth instance name."""

    def __init__(self):
        self._sessions: Dict[str, Any] = {}
        self._lock = threading.RLock()

    async def write(self, auth_name: str, user_id: Any) -> None:
        with self._lock:
            self._sessions[auth_name] = user_id

    async def read(self, auth_name: str) -> Optional[Any]:
        with self._lock:
            return self._sessions.get(auth_name)

    async def delete(self, auth_name: str) -> None:
        with self._lock:
            self._sessions.pop(auth_name, None)
