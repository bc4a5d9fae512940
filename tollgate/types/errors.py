"""
Error types and error codes for Tollgate.
Provides structured error handling across all packages.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorCode(str, Enum):
    """Standard error codes used across Tollgate."""
    INTERNAL_ERROR = "internal_error"
    VALIDATION_FAILED = "validation_failed"
    CONFIGURATION_ERROR = "configuration_error"
    PACKAGE_ERROR = "package_error"
    USER_NOT_FOUND = "user_not_found"
    PACKAGE_NOT_FOUND = "package_not_found"
    PACKAGE_INVALID_TYPE = "package_invalid_type"

    def __str__(self) -> str:
        return self.value


# Error code constants for easy import
INTERNAL_ERROR = ErrorCode.INTERNAL_ERROR
VALIDATION_FAILED = ErrorCode.VALIDATION_FAILED
CONFIGURATION_ERROR = ErrorCode.CONFIGURATION_ERROR
PACKAGE_ERROR = ErrorCode.PACKAGE_ERROR
USER_NOT_FOUND = ErrorCode.USER_NOT_FOUND
PACKAGE_NOT_FOUND = ErrorCode.PACKAGE_NOT_FOUND
PACKAGE_INVALID_TYPE = ErrorCode.PACKAGE_INVALID_TYPE


class TollgateError(Exception):
    """Base exception for all Tollgate errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            'error': self.error_code.value,
            'message': self.message,
            'details': self.details
        }

        if self.cause:
            result['cause'] = str(self.cause)

        return result

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class ValidationError(TollgateError):
    """Raised when a value handed to Tollgate has the wrong shape."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, VALIDATION_FAILED, details)
        self.field = field
        self.value = value

        if field:
            self.details['field'] = field
        if value is not None:
            self.details['value'] = repr(value)


class ConfigurationError(TollgateError):
    """Raised when there's a configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, CONFIGURATION_ERROR, details)
        self.config_key = config_key
        self.config_value = config_value

        if config_key:
            self.details['config_key'] = config_key
        if config_value is not None:
            self.details['config_value'] = str(config_value)


class PackageError(TollgateError):
    """Base class for package and user membership errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = PACKAGE_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details)


class UserNotFoundError(PackageError):
    """Raised when storage cannot resolve a user id."""

    def __init__(self, user_id: Any, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"User {user_id} not found.", USER_NOT_FOUND, details)
        self.user_id = user_id
        self.details['user_id'] = str(user_id)


class PackageNotFoundError(PackageError):
    """Raised when a package reference does not name a known package."""

    def __init__(self, reference: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Package: {reference} not found.", PACKAGE_NOT_FOUND, details)
        self.reference = reference
        self.details['reference'] = reference


class PackageInvalidTypeError(PackageError):
    """Raised when a package reference resolves to something that is not a Package."""

    def __init__(self, reference: Any, details: Optional[Dict[str, Any]] = None):
        type_name = reference.__name__ if isinstance(reference, type) else type(reference).__name__
        super().__init__(
            f"Package: {type_name} must inherit from tollgate.Package",
            PACKAGE_INVALID_TYPE,
            details
        )
        self.reference = reference
        self.details['type'] = type_name
