"""
Packages: named, precedence-ranked bundles of permission rules and callbacks.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from importlib import import_module
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Set, Type, Union
import logging

from ..types.errors import PackageInvalidTypeError, PackageNotFoundError, ValidationError


logger = logging.getLogger(__name__)


class Package:
    """
    A bundle of permissions with a precedence.

    Packages are merged in ascending precedence order, so a package with a
    higher precedence overwrites the permissions of lower ones. Precedence
    values are advisory; nothing stops two packages from sharing one, in
    which case their relative order is the order the storage returned them in.

    Subclasses usually override :meth:`init`::

        class Moderator(Package):
            def init(self):
                self.precedence = 20
                self.add_rule('lock_topics', True)
                self.add_callback('edit_post', self.can_edit_post)

            def can_edit_post(self, user, post):
                return post.forum_id in user.moderated_forums
    """

    def __init__(
        self,
        name: Optional[str] = None,
        precedence: Union[int, float] = 0,
        rules: Optional[Mapping[str, bool]] = None,
        callbacks: Optional[Mapping[str, Callable[..., bool]]] = None,
    ):
        self._name = name or type(self).__name__
        self.precedence = precedence
        self._rules: Dict[str, bool] = {}
        self._callbacks: Dict[str, Callable[..., bool]] = {}

        for permission, value in (rules or {}).items():
            self.add_rule(permission, value)
        for permission, procedure in (callbacks or {}).items():
            self.add_callback(permission, procedure)

        self.init()

    def init(self) -> None:
        """Hook for subclasses to set precedence, rules and callbacks."""

    @property
    def name(self) -> str:
        return self._name

    @property
    def rules(self) -> Mapping[str, bool]:
        return MappingProxyType(self._rules)

    @property
    def callbacks(self) -> Mapping[str, Callable[..., bool]]:
        return MappingProxyType(self._callbacks)

    def add_rule(self, permission: str, value: bool) -> 'Package':
        """Bind a permission to a fixed boolean, replacing any callback of that name."""
        if not isinstance(value, bool):
            raise ValidationError(
                f"Rule {permission} on package {self.name} must be a bool",
                field=permission,
                value=value
            )
        self._callbacks.pop(permission, None)
        self._rules[permission] = value
        return self

    def add_callback(self, permission: str, procedure: Callable[..., bool]) -> 'Package':
        """Bind a permission to a decision procedure, replacing any rule of that name."""
        if not callable(procedure):
            raise ValidationError(
                f"Callback {permission} on package {self.name} must be callable",
                field=permission,
                value=procedure
            )
        self._rules.pop(permission, None)
        self._callbacks[permission] = procedure
        return self

    def permission_names(self) -> Set[str]:
        """Names defined by this package, rules and callbacks together."""
        return set(self._rules) | set(self._callbacks)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'name': self.name,
            'precedence': self.precedence,
            'rules': dict(self._rules),
            'callbacks': sorted(self._callbacks),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} precedence={self.precedence!r}>"


PackageRef = Union[str, Package, Type[Package]]


class PackageRegistry:
    """
    Resolves package references into Package instances.

    A reference can be a Package instance, a Package subclass, a name
    registered with :meth:`register`, or an import path such as
    ``"myapp.packages:Admin"`` or ``"myapp.packages.Admin"``.
    """

    def __init__(self):
        self._packages: Dict[str, Type[Package]] = {}

    def register(self, package_cls: Optional[Type[Package]] = None, name: Optional[str] = None):
        """
        Register a Package subclass under ``name`` (defaults to the class name).
        Can be used as a plain call or as a class decorator.
        """
        def decorator(cls: Type[Package]) -> Type[Package]:
            if not (isinstance(cls, type) and issubclass(cls, Package)):
                raise PackageInvalidTypeError(cls)
            self._packages[name or cls.__name__] = cls
            logger.debug(f"Registered package {name or cls.__name__}")
            return cls

        if package_cls is None:
            return decorator
        return decorator(package_cls)

    def unregister(self, name: str) -> bool:
        return self._packages.pop(name, None) is not None

    def names(self):
        return sorted(self._packages)

    def __contains__(self, name: str) -> bool:
        return name in self._packages

    def resolve(self, reference: PackageRef) -> Package:
        """
        Turn a reference into a Package instance.

        Raises:
            PackageNotFoundError: a string reference names nothing known
            PackageInvalidTypeError: the reference is not a Package
        """
        if isinstance(reference, Package):
            return reference

        if isinstance(reference, type):
            if issubclass(reference, Package):
                return reference()
            raise PackageInvalidTypeError(reference)

        if isinstance(reference, str):
            if reference in self._packages:
                return self._packages[reference]()
            return self._import(reference)()

        raise PackageInvalidTypeError(reference)

    def try_resolve(self, reference: PackageRef) -> Optional[Package]:
        """Like :meth:`resolve`, but returns None for references that do not resolve."""
        try:
            return self.resolve(reference)
        except (PackageNotFoundError, PackageInvalidTypeError) as e:
            logger.debug(f"Ignoring unresolvable package reference {reference!r}: {e}")
            return None

    def _import(self, path: str) -> Type[Package]:
        if ':' in path:
            module_path, _, attr = path.partition(':')
        else:
            module_path, _, attr = path.rpartition('.')

        if not module_path or not attr:
            raise PackageNotFoundError(path)

        try:
            module = import_module(module_path)
        except ModuleNotFoundError:
            raise PackageNotFoundError(path)

        target = getattr(module, attr, None)
        if target is None:
            raise PackageNotFoundError(path)
        if not (isinstance(target, type) and issubclass(target, Package)):
            raise PackageInvalidTypeError(target)
        return target
