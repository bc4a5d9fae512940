"""
Permission resolution: merges a user's packages and overrides into one
effective permission map.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Dict, Mapping, Optional, Sequence
import logging

from .package import Package
from .types import Permission


logger = logging.getLogger(__name__)


class PermissionResolver:
    """
    Builds effective permission maps.

    The resolver is stateless; ``resolve`` is a pure function of its inputs.
    """

    def resolve(
        self,
        packages: Sequence[Package],
        overrides: Optional[Mapping[str, bool]] = None
    ) -> Dict[str, Permission]:
        """
        Merge packages by ascending precedence, then apply overrides.

        Within a package, rules are applied before callbacks. A later
        package replaces an earlier value whatever its kind, so a boolean
        can replace a callback and the other way round. Overrides only
        replace names some package already defines.

        Args:
            packages: The user's packages, in storage order
            overrides: Per-user boolean overrides

        Returns:
            Dict[str, Permission]: The effective permission map
        """
        permissions = self.merge(packages)

        for name, value in (overrides or {}).items():
            if name in permissions:
                permissions[name] = Permission.rule(bool(value))
            else:
                logger.debug(f"Ignoring override for undefined permission {name}")

        return permissions

    def merge(self, packages: Sequence[Package]) -> Dict[str, Permission]:
        """Merge packages without overrides."""
        permissions: Dict[str, Permission] = {}

        # sorted() is stable, so equal precedences keep their input order
        for package in sorted(packages, key=lambda p: p.precedence):
            for name, value in package.rules.items():
                permissions[name] = Permission.rule(value)

            for name, procedure in package.callbacks.items():
                permissions[name] = Permission.callback(procedure)

        return permissions


def resolve_permissions(
    packages: Sequence[Package],
    overrides: Optional[Mapping[str, bool]] = None
) -> Dict[str, Permission]:
    """Convenience wrapper around :meth:`PermissionResolver.resolve`."""
    return PermissionResolver().resolve(packages, overrides)
