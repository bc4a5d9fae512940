"""
Session interface for Tollgate.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class SessionDelegate(ABC):
    """
    Abstract base class for session storage.

    A session binds one user id to one Auth instance name.
    """

    @abstractmethod
    async def write(self, auth_name: str, user_id: Any) -> None:
        """Record that ``user_id`` is logged in to ``auth_name``."""
        pass

    @abstractmethod
    async def read(self, auth_name: str) -> Optional[Any]:
        """Return the logged in user id, or None."""
        pass

    @abstractmethod
    async def delete(self, auth_name: str) -> None:
        """Forget the logged in user."""
        pass
