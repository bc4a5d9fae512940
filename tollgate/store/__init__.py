# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package store provides the storage abstractions Tollgate reads users,
package memberships and overrides through.

This package implements:
- The StorageDelegate interface
- User types (UserRepresentation, UserRecord)
- Memory-based storage for development/testing
"""

from .types import (
    UserRepresentation,
    UserRecord,
    StorageDelegate,
)

from .memory import (
    User,
    MemoryStorage,
)

__all__ = [
    # Core types
    'UserRepresentation',
    'UserRecord',
    'StorageDelegate',

    # Implementations
    'User',
    'MemoryStorage',
]
