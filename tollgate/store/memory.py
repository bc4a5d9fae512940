"""
In-memory storage delegate for Tollgate.
Provides a simple memory-based storage backend for development and testing.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import threading

from ..permissions.package import Package
from .types import StorageDelegate, UserRecord, UserRepresentation


class User(UserRepresentation):
    """Plain user object kept by MemoryStorage."""

    def __init__(self, user_id: Any, identifier: str, password_hash: str = "", **attributes):
        self._id = user_id
        self.identifier = identifier
        self.password_hash = password_hash
        self.attributes: Dict[str, Any] = dict(attributes)

    @property
    def id(self) -> Any:
        return self._id

    def __getattr__(self, item: str) -> Any:
        attributes = self.__dict__.get('attributes', {})
        if item in attributes:
            return attributes[item]
        raise AttributeError(item)

    def to_record(self) -> UserRecord:
        return UserRecord(
            id=self._id,
            identifier=self.identifier,
            password_hash=self.password_hash,
            attributes=dict(self.attributes)
        )

    def __repr__(self) -> str:
        return f"<User id={self._id!r} identifier={self.identifier!r}>"


class MemoryStorage(StorageDelegate):
    """
    In-memory storage delegate.

    This implementation keeps users, package memberships and overrides in
    dictionaries and is suitable for:
    - Development and testing
    - Single-process applications with a fixed user base

    Users are shared by every Auth instance; memberships and overrides are
    kept per Auth instance name. Memberships are keyed by package name, so
    adding a second package with the same name replaces the first.

    Note: All data is lost when the process terminates.
    """

    def __init__(self):
        # user_id -> User
        self._users: Dict[Any, User] = {}

        # (auth_name, user_id) -> {package_name: Package}
        self._packages: Dict[Tuple[str, Any], Dict[str, Package]] = {}

        # (auth_name, user_id) -> {permission: bool}
        self._overrides: Dict[Tuple[str, Any], Dict[str, bool]] = {}

        self._lock = threading.RLock()

    # Memory-specific methods
    def add_user(self, user_id: Any, identifier: str, password_hash: str = "", **attributes) -> User:
        """Create or replace a user. Useful for testing."""
        user = User(user_id, identifier, password_hash, **attributes)
        with self._lock:
            self._users[user_id] = user
        return user

    def remove_user(self, user_id: Any) -> bool:
        """Delete a user along with their memberships and overrides."""
        with self._lock:
            if user_id not in self._users:
                return False
            del self._users[user_id]
            for key in [k for k in self._packages if k[1] == user_id]:
                del self._packages[key]
            for key in [k for k in self._overrides if k[1] == user_id]:
                del self._overrides[key]
            return True

    def get_user_count(self) -> int:
        with self._lock:
            return len(self._users)

    # StorageDelegate
    async def fetch_user_by_identifier(self, auth_name: str, identifier: str) -> Optional[UserRecord]:
        with self._lock:
            for user in self._users.values():
                if user.identifier == identifier:
                    return user.to_record()
        return None

    async def fetch_user_representation(self, auth_name: str, user_id: Any) -> Optional[UserRepresentation]:
        with self._lock:
            return self._users.get(user_id)

    async def add_package_to_user(self, auth_name: str, user: UserRepresentation, package: Package) -> None:
        with self._lock:
            self._packages.setdefault((auth_name, user.id), {})[package.name] = package

    async def remove_package_from_user(self, auth_name: str, user: UserRepresentation, package: Package) -> None:
        with self._lock:
            memberships = self._packages.get((auth_name, user.id))
            if memberships is not None:
                memberships.pop(package.name, None)

    async def fetch_packages_for_user(self, auth_name: str, user: UserRepresentation) -> Sequence[Package]:
        with self._lock:
            return list(self._packages.get((auth_name, user.id), {}).values())

    async def user_has_package(self, auth_name: str, user: UserRepresentation, package: Package) -> bool:
        with self._lock:
            return package.name in self._packages.get((auth_name, user.id), {})

    async def fetch_overrides_for_user(self, auth_name: str, user: UserRepresentation) -> Mapping[str, bool]:
        with self._lock:
            return dict(self._overrides.get((auth_name, user.id), {}))

    async def override_permission_for_user(
        self,
        auth_name: str,
        user: UserRepresentation,
        permission: str,
        value: bool
    ) -> bool:
        with self._lock:
            if user.id not in self._users:
                return False
            self._overrides.setdefault((auth_name, user.id), {})[permission] = value
            return True

    async def reset_overrides_for_user(self, auth_name: str, user: UserRepresentation) -> bool:
        with self._lock:
            if user.id not in self._users:
                return False
            self._overrides.pop((auth_name, user.id), None)
            return True

    def list_overrides(self, auth_name: str, user_id: Any) -> List[Tuple[str, bool]]:
        """Return a user's overrides as sorted pairs. Useful for testing."""
        with self._lock:
            return sorted(self._overrides.get((auth_name, user_id), {}).items())
