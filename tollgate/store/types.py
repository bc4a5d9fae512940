"""
Storage interfaces for Tollgate.
Defines the user types and the storage delegate the engine reads users,
packages and overrides through.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from ..permissions.package import Package


class UserRepresentation(ABC):
    """
    The application's view of a user, as handed back by storage.

    Tollgate never builds or owns these; it only asks storage for them and
    passes them to permission callbacks.
    """

    @property
    @abstractmethod
    def id(self) -> Any:
        """Primary key of the user."""
        pass


@dataclass
class UserRecord:
    """Credential view of a user, used by login."""
    id: Any
    identifier: str
    password_hash: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (without the hash)."""
        return {
            'id': self.id,
            'identifier': self.identifier,
            'attributes': self.attributes
        }


class StorageDelegate(ABC):
    """
    Abstract base class for user, package and override storage.

    Every method receives the name of the Auth instance making the call so
    that one store can serve several instances.
    """

    @abstractmethod
    async def fetch_user_by_identifier(self, auth_name: str, identifier: str) -> Optional[UserRecord]:
        """Fetch the credential record for a login identifier (e.g. username)."""
        pass

    @abstractmethod
    async def fetch_user_representation(self, auth_name: str, user_id: Any) -> Optional[UserRepresentation]:
        """Fetch the user representation for a primary key."""
        pass

    @abstractmethod
    async def add_package_to_user(self, auth_name: str, user: UserRepresentation, package: Package) -> None:
        """Give a package to a user."""
        pass

    @abstractmethod
    async def remove_package_from_user(self, auth_name: str, user: UserRepresentation, package: Package) -> None:
        """Take a package away from a user."""
        pass

    @abstractmethod
    async def fetch_packages_for_user(self, auth_name: str, user: UserRepresentation) -> Sequence[Package]:
        """List the packages a user has."""
        pass

    @abstractmethod
    async def user_has_package(self, auth_name: str, user: UserRepresentation, package: Package) -> bool:
        """Check whether a user has a package."""
        pass

    @abstractmethod
    async def fetch_overrides_for_user(self, auth_name: str, user: UserRepresentation) -> Mapping[str, bool]:
        """Return the user's permission overrides."""
        pass

    @abstractmethod
    async def override_permission_for_user(
        self,
        auth_name: str,
        user: UserRepresentation,
        permission: str,
        value: bool
    ) -> bool:
        """Store an override. Returns True on success."""
        pass

    @abstractmethod
    async def reset_overrides_for_user(self, auth_name: str, user: UserRepresentation) -> bool:
        """Remove every override of a user. Returns True on success."""
        pass
