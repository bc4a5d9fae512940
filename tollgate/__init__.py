"""
Tollgate Python Package

Pluggable authentication with package-based permissions.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

__version__ = "0.1.0"

from .core.auth import Auth
from .core.config import AuthOptions
from .core.registry import AuthRegistry
from .permissions import (
    Package,
    PackageRegistry,
    Permission,
    PermissionKind,
    PermissionResolver,
    resolve_permissions,
)
from .session import SessionDelegate, MemorySession, RedisSession
from .store import StorageDelegate, MemoryStorage, UserRepresentation, UserRecord
from .types.errors import (
    TollgateError,
    ValidationError,
    ConfigurationError,
    PackageError,
    UserNotFoundError,
    PackageNotFoundError,
    PackageInvalidTypeError,
)

__all__ = [
    "Auth",
    "AuthOptions",
    "AuthRegistry",
    "Package",
    "PackageRegistry",
    "Permission",
    "PermissionKind",
    "PermissionResolver",
    "resolve_permissions",
    "SessionDelegate",
    "MemorySession",
    "RedisSession",
    "StorageDelegate",
    "MemoryStorage",
    "UserRepresentation",
    "UserRecord",
    "TollgateError",
    "ValidationError",
    "ConfigurationError",
    "PackageError",
    "UserNotFoundError",
    "PackageNotFoundError",
    "PackageInvalidTypeError",
]
