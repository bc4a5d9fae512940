"""
Permission value types for Tollgate.
A resolved permission is either a fixed boolean rule or a decision callback.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence


class PermissionKind(Enum):
    """Tag for a resolved permission value."""
    RULE = "rule"
    CALLBACK = "callback"


@dataclass(frozen=True)
class Permission:
    """
    A resolved permission.

    RULE permissions carry ``value``. CALLBACK permissions carry
    ``procedure``, which is called as ``procedure(user, *args)`` and must
    return a boolean.
    """
    kind: PermissionKind
    value: bool = False
    procedure: Optional[Callable[..., bool]] = None

    @classmethod
    def rule(cls, value: bool) -> 'Permission':
        return cls(kind=PermissionKind.RULE, value=value)

    @classmethod
    def callback(cls, procedure: Callable[..., bool]) -> 'Permission':
        return cls(kind=PermissionKind.CALLBACK, procedure=procedure)

    @property
    def is_rule(self) -> bool:
        return self.kind is PermissionKind.RULE

    @property
    def is_callback(self) -> bool:
        return self.kind is PermissionKind.CALLBACK

    def evaluate(self, user: Any, args: Sequence[Any] = ()) -> bool:
        """
        Evaluate the permission for a user.

        Rules ignore ``args``. Exceptions raised by a callback propagate
        to the caller untouched.
        """
        if self.kind is PermissionKind.RULE:
            return self.value
        return bool(self.procedure(user, *args))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        if self.kind is PermissionKind.RULE:
            return {'kind': self.kind.value, 'value': self.value}
        name = getattr(self.procedure, '__qualname__', repr(self.procedure))
        return {'kind': self.kind.value, 'procedure': name}


@dataclass(frozen=True)
class ResolvedPermissions:
    """Cached snapshot of a user's effective permission map."""
    user_id: Any
    user: Any
    permissions: Mapping[str, Permission] = field(default_factory=dict)

    def __post_init__(self):
        # Callers never get a handle on the dict the snapshot was built from.
        object.__setattr__(self, 'permissions', MappingProxyType(dict(self.permissions)))

    def get(self, name: str) -> Optional[Permission]:
        return self.permissions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.permissions

    def __len__(self) -> int:
        return len(self.permissions)
