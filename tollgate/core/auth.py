"""
Main Tollgate implementation.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from typing import Any, List, Mapping, Optional, Sequence, Union
import asyncio
import logging
import threading
import uuid
import weakref

from passlib.context import CryptContext

from .config import AuthOptions
from ..audit.logger import (
    AuditEvent, AuditLogger, MemoryAuditLogger,
    LOGIN, LOGIN_FAILED, LOGOUT, FORCE_LOGIN, PACKAGE_ADDED, PACKAGE_REMOVED,
    PERMISSION_OVERRIDDEN, OVERRIDES_RESET,
)
from ..metrics.collector import MetricConfig, MetricsCollector
from ..permissions.cache import PermissionCache
from ..permissions.package import Package, PackageRef, PackageRegistry
from ..permissions.resolver import PermissionResolver
from ..permissions.types import Permission, ResolvedPermissions
from ..session.types import SessionDelegate
from ..store.types import StorageDelegate, UserRepresentation
from ..types.errors import ConfigurationError, UserNotFoundError, ValidationError


logger = logging.getLogger(__name__)


class Auth:
    """
    Authentication and permission engine for one named auth context.

    Users, package memberships and overrides come from a StorageDelegate;
    the logged in user comes from a SessionDelegate. Every change to a
    user's packages or overrides rebuilds that user's permission map before
    the call returns, so permission checks never see stale data.

    Permission callbacks run synchronously inside ``user_can`` and receive
    the user as storage returns it at call time. A callback
    must not add or remove packages or overrides for the user it is being
    evaluated for; doing so is undefined behaviour.
    """

    def __init__(
        self,
        name: str,
        session: SessionDelegate,
        storage: StorageDelegate,
        options: Optional[Union[AuthOptions, Mapping[str, Any]]] = None,
        package_registry: Optional[PackageRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize an Auth instance.

        Args:
            name: Name of this instance, passed to every delegate call
            session: Session delegate
            storage: Storage delegate
            options: AuthOptions, or a mapping merged over the defaults
            package_registry: Resolves package names (defaults to an empty registry)
            audit_logger: Audit logging implementation (defaults to in-memory)
            metrics: Metrics collector (defaults to one with a private registry)
        """
        if options is None:
            options = AuthOptions()
        elif not isinstance(options, AuthOptions):
            options = AuthOptions().merged(options)

        self._name = name
        self.session = session
        self.storage = storage
        self.options = options
        self.packages = package_registry or PackageRegistry()
        self.audit_logger = audit_logger or MemoryAuditLogger(max_entries=1000)
        self.metrics = metrics or MetricsCollector(MetricConfig(enabled=options.metrics_enabled))

        self.resolver = PermissionResolver()
        self.cache = PermissionCache()

        self._user: Optional[UserRepresentation] = None
        # Entries disappear once no rebuild holds or waits on the lock
        self._rebuild_locks: "weakref.WeakValueDictionary[Any, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

        crypt_settings = {}
        if "bcrypt" in options.hash_schemes:
            crypt_settings["bcrypt__default_rounds"] = options.cost
        try:
            self._pwd_context = CryptContext(
                schemes=options.hash_schemes, deprecated="auto", **crypt_settings
            )
        except (KeyError, ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid hash schemes: {e}",
                config_key="hash_schemes",
                config_value=options.hash_schemes
            ) from e

    @classmethod
    def new(
        cls,
        name: str,
        session: SessionDelegate,
        storage: StorageDelegate,
        options: Optional[Union[AuthOptions, Mapping[str, Any]]] = None,
        **kwargs
    ) -> "Auth":
        """
        Create a new Auth instance after validating its options.

        Raises:
            ConfigurationError: If the options are invalid

        Example:
            auth = Auth.new("admin", MemorySession(), MemoryStorage(), {"cost": 10})
        """
        auth = cls(name, session, storage, options, **kwargs)
        auth.options.validate()
        return auth

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"<Auth name={self._name!r}>"

    # ------------ Passwords ------------

    def hash_password(self, password: str) -> str:
        """Hash a plaintext password with the configured scheme and cost."""
        return self._pwd_context.hash(password)

    def check_password(self, password: str, password_hash: str) -> bool:
        """Check a plaintext password against a stored hash."""
        if not password_hash:
            return False
        try:
            return self._pwd_context.verify(password, password_hash)
        except ValueError as e:
            logger.warning(f"[{self._name}] Unverifiable password hash: {e}")
            return False

    # ------------ Sessions ------------

    async def login(self, identifier: str, password: str) -> bool:
        """
        Attempt to log a user in.

        Args:
            identifier: Login identifier, e.g. the username
            password: Plaintext password

        Returns:
            bool: True if the credentials matched and the session was written
        """
        record = await self.storage.fetch_user_by_identifier(self._name, identifier)
        if record is None or not self.check_password(password, record.password_hash):
            logger.info(f"[{self._name}] Failed login for {identifier}")
            self.metrics.record_login(self._name, False)
            await self._audit(LOGIN_FAILED, None, identifier=identifier)
            return False

        await self.session.write(self._name, record.id)
        self._user = None

        logger.info(f"[{self._name}] User {record.id} logged in")
        self.metrics.record_login(self._name, True)
        await self._audit(LOGIN, record.id, identifier=identifier)
        return True

    async def logged_in(self) -> bool:
        return await self.session.read(self._name) is not None

    async def logout(self) -> None:
        """Destroy the session and forget the current user."""
        user_id = await self.session.read(self._name)
        await self.session.delete(self._name)
        self._user = None

        if user_id is not None:
            logger.info(f"[{self._name}] User {user_id} logged out")
            await self._audit(LOGOUT, user_id)

    async def force_login(self, user: Union[UserRepresentation, str, int, uuid.UUID]) -> bool:
        """
        Log a user in without checking credentials.

        Use this with extreme caution, e.g. straight after registration.

        Args:
            user: A UserRepresentation or a user id

        Returns:
            bool: Whether the session was written
        """
        if not isinstance(user, UserRepresentation):
            if not isinstance(user, (str, int, uuid.UUID)) or isinstance(user, bool):
                return False
            user = await self.storage.fetch_user_representation(self._name, user)
            if user is None:
                return False

        await self.session.write(self._name, user.id)
        self._user = user

        logger.info(f"[{self._name}] User {user.id} force logged in")
        await self._audit(FORCE_LOGIN, user.id)
        return True

    async def user(self) -> Optional[UserRepresentation]:
        """
        Return the logged in user, or None.

        If storage no longer knows the session's user, the session is
        destroyed.
        """
        user_id = await self.session.read(self._name)
        if user_id is None:
            return None

        if self._user is None or self._user.id != user_id:
            self._user = await self.storage.fetch_user_representation(self._name, user_id)

        if self._user is None:
            logger.warning(f"[{self._name}] Session user {user_id} no longer exists")
            await self.logout()

        return self._user

    # ------------ Packages ------------

    async def add_package_to_user(self, user_id: Any, package: PackageRef) -> "Auth":
        """
        Give a package to a user and rebuild their permissions.

        Raises:
            UserNotFoundError: If the user does not exist
            PackageNotFoundError: If a package name cannot be resolved
            PackageInvalidTypeError: If the reference is not a Package
        """
        user = await self._load_user_representation(user_id)
        package = self.packages.resolve(package)

        await self.storage.add_package_to_user(self._name, user, package)
        logger.info(f"[{self._name}] Added package {package.name} to user {user_id}")
        await self._audit(PACKAGE_ADDED, user_id, package=package.name)

        await self._build_permissions_for_user(user_id)
        return self

    async def remove_package_from_user(self, user_id: Any, package: PackageRef) -> "Auth":
        """
        Take a package away from a user and rebuild their permissions.

        A reference that does not resolve to a package is ignored.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self._load_user_representation(user_id)
        package = self.packages.try_resolve(package)
        if package is None:
            return self

        await self.storage.remove_package_from_user(self._name, user, package)
        logger.info(f"[{self._name}] Removed package {package.name} from user {user_id}")
        await self._audit(PACKAGE_REMOVED, user_id, package=package.name)

        await self._build_permissions_for_user(user_id)
        return self

    async def packages_for_user(self, user_id: Any) -> List[Package]:
        """
        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self._load_user_representation(user_id)
        return list(await self.storage.fetch_packages_for_user(self._name, user))

    async def user_has_package(self, user_id: Any, package: PackageRef) -> bool:
        """
        Check whether a user has a package. References that do not resolve
        to a package give False.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self._load_user_representation(user_id)
        package = self.packages.try_resolve(package)
        if package is None:
            return False
        return bool(await self.storage.user_has_package(self._name, user, package))

    # ------------ Permissions ------------

    async def user_can(self, user_id: Any, permission: str, args: Sequence[Any] = ()) -> bool:
        """
        Check whether a user has a permission.

        Undefined permissions and unknown users give False. A boolean
        permission ignores ``args``; a callback permission is called with
        the user representation followed by ``args``. Exceptions raised by a
        callback propagate.

        Args:
            user_id: User ID
            permission: Permission name
            args: Arguments for a callback permission

        Returns:
            bool: True = yes they can. False = no they can't
        """
        entry = self.cache.get(user_id)
        if entry is None:
            try:
                entry = await self._build_permissions_for_user(user_id)
            except UserNotFoundError:
                logger.debug(f"[{self._name}] Permission check for unknown user {user_id}")
                self.metrics.record_check(self._name, False)
                return False

        resolved = entry.get(permission)
        if resolved is None:
            allowed = False
        elif resolved.is_callback:
            # Callbacks decide on the user as storage has it now
            try:
                user = await self._load_user_representation(user_id)
            except UserNotFoundError:
                logger.debug(f"[{self._name}] Callback check for removed user {user_id}")
                allowed = False
            else:
                allowed = resolved.evaluate(user, tuple(args))
        else:
            allowed = resolved.evaluate(entry.user, tuple(args))

        self.metrics.record_check(self._name, allowed)
        return allowed

    async def can(self, permission: str, args: Sequence[Any] = ()) -> bool:
        """Shortcut for ``user_can`` for the logged in user. False when nobody is logged in."""
        user_id = await self.session.read(self._name)
        if user_id is None:
            return False
        return await self.user_can(user_id, permission, args)

    async def permissions_for_user(self, user_id: Any) -> Mapping[str, Permission]:
        """
        Read-only view of a user's effective permissions.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        entry = self.cache.get(user_id)
        if entry is None:
            entry = await self._build_permissions_for_user(user_id)
        return entry.permissions

    async def override_permission_for_user(self, user_id: Any, permission: str, value: bool) -> "Auth":
        """
        Pin a permission to a boolean for one user, above every package.

        Overrides for permissions no package defines have no effect.

        Raises:
            UserNotFoundError: If the user does not exist
            ValidationError: If value is not a bool
        """
        if not isinstance(value, bool):
            raise ValidationError("Override value must be a bool", field=permission, value=value)

        user = await self._load_user_representation(user_id)

        if await self.storage.override_permission_for_user(self._name, user, permission, value):
            logger.info(f"[{self._name}] Overrode {permission}={value} for user {user_id}")
            await self._audit(PERMISSION_OVERRIDDEN, user_id, permission=permission, value=value)
            await self._build_permissions_for_user(user_id)

        return self

    async def reset_overrides_for_user(self, user_id: Any) -> "Auth":
        """
        Remove every override of a user, returning them to package settings.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self._load_user_representation(user_id)

        if await self.storage.reset_overrides_for_user(self._name, user):
            logger.info(f"[{self._name}] Reset overrides for user {user_id}")
            await self._audit(OVERRIDES_RESET, user_id)
            await self._build_permissions_for_user(user_id)

        return self

    def invalidate(self, user_id: Any = None) -> None:
        """Drop a user's cached permissions, or everyone's when user_id is None."""
        if user_id is None:
            self.cache.clear()
        else:
            self.cache.invalidate(user_id)

    # ------------ Internals ------------

    async def _load_user_representation(self, user_id: Any) -> UserRepresentation:
        user = await self.storage.fetch_user_representation(self._name, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _rebuild_lock(self, user_id: Any) -> asyncio.Lock:
        with self._locks_guard:
            lock = self._rebuild_locks.get(user_id)
            if lock is None:
                lock = self._rebuild_locks[user_id] = asyncio.Lock()
            return lock

    async def _build_permissions_for_user(self, user_id: Any) -> ResolvedPermissions:
        """Resolve a user's packages and overrides and swap the result into the cache."""
        async with self._rebuild_lock(user_id):
            with self.metrics.time_rebuild(self._name):
                user = await self._load_user_representation(user_id)
                packages = await self.storage.fetch_packages_for_user(self._name, user)
                overrides = await self.storage.fetch_overrides_for_user(self._name, user)
                permissions = self.resolver.resolve(list(packages), overrides)

            entry = ResolvedPermissions(user_id=user_id, user=user, permissions=permissions)
            self.cache.put(user_id, entry)

        logger.debug(
            f"[{self._name}] Rebuilt {len(entry)} permissions for user {user_id} "
            f"from {len(packages)} package(s)"
        )
        return entry

    async def _audit(self, event_type: str, user_id: Any, **details) -> None:
        if not self.options.audit_enabled:
            return
        await self.audit_logger.log(AuditEvent(
            event_type=event_type,
            auth_name=self._name,
            user_id=None if user_id is None else str(user_id),
            details=details,
        ))
