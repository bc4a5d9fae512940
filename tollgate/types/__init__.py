"""
Shared error types for Tollgate.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from .errors import (
    ErrorCode,
    TollgateError,
    ValidationError,
    ConfigurationError,
    PackageError,
    UserNotFoundError,
    PackageNotFoundError,
    PackageInvalidTypeError,
    INTERNAL_ERROR,
    VALIDATION_FAILED,
    CONFIGURATION_ERROR,
    PACKAGE_ERROR,
    USER_NOT_FOUND,
    PACKAGE_NOT_FOUND,
    PACKAGE_INVALID_TYPE,
)

__all__ = [
    'ErrorCode',
    'TollgateError',
    'ValidationError',
    'ConfigurationError',
    'PackageError',
    'UserNotFoundError',
    'PackageNotFoundError',
    'PackageInvalidTypeError',
    'INTERNAL_ERROR',
    'VALIDATION_FAILED',
    'CONFIGURATION_ERROR',
    'PACKAGE_ERROR',
    'USER_NOT_FOUND',
    'PACKAGE_NOT_FOUND',
    'PACKAGE_INVALID_TYPE',
]
