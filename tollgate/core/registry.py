"""
Registry of named Auth instances.

Applications that run several auth contexts (say "admin" and "frontend")
create one registry at startup and look instances up by name from there.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Any, Dict, List, Mapping, Optional, Union
import logging
import threading

from .auth import Auth
from .config import AuthOptions
from ..session.types import SessionDelegate
from ..store.types import StorageDelegate
from ..types.errors import ConfigurationError


logger = logging.getLogger(__name__)


class AuthRegistry:
    """Holds Auth instances by name."""

    def __init__(self):
        self._instances: Dict[str, Auth] = {}
        self._lock = threading.RLock()

    def register(self, auth: Auth) -> Auth:
        """
        Add an instance.

        Raises:
            ConfigurationError: If an instance with the same name is registered
        """
        with self._lock:
            if auth.name in self._instances:
                raise ConfigurationError(
                    f"Auth instance {auth.name} is already registered",
                    config_key="name",
                    config_value=auth.name
                )
            self._instances[auth.name] = auth
        logger.debug(f"Registered auth instance {auth.name}")
        return auth

    def create(
        self,
        name: str,
        session: SessionDelegate,
        storage: StorageDelegate,
        options: Optional[Union[AuthOptions, Mapping[str, Any]]] = None,
        **kwargs
    ) -> Auth:
        """Build an instance with ``Auth.new`` and register it."""
        return self.register(Auth.new(name, session, storage, options, **kwargs))

    def get(self, name: str) -> Optional[Auth]:
        with self._lock:
            return self._instances.get(name)

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._instances.pop(name, None) is not None

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._instances)

    def instances(self) -> Dict[str, Auth]:
        with self._lock:
            return dict(self._instances)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)
