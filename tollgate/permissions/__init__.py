# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package permissions implements the permission model of Tollgate.

This package provides:
- Packages: precedence-ranked bundles of rules and callbacks
- Package references and their resolution
- The resolver that merges packages and overrides into an effective map
- The per-user cache of effective maps
"""

from .types import (
    PermissionKind,
    Permission,
    ResolvedPermissions,
)

from .package import (
    Package,
    PackageRef,
    PackageRegistry,
)

from .resolver import (
    PermissionResolver,
    resolve_permissions,
)

from .cache import PermissionCache

__all__ = [
    # Types
    'PermissionKind',
    'Permission',
    'ResolvedPermissions',

    # Packages
    'Package',
    'PackageRef',
    'PackageRegistry',

    # Resolution
    'PermissionResolver',
    'resolve_permissions',

    # Cache
    'PermissionCache',
]
