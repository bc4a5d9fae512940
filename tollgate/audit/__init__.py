"""
Audit module initialization

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from .logger import (
    AuditEvent,
    AuditLogger,
    MemoryAuditLogger,
    FileAuditLogger,
    create_audit_logger,
    LOGIN,
    LOGIN_FAILED,
    LOGOUT,
    FORCE_LOGIN,
    PACKAGE_ADDED,
    PACKAGE_REMOVED,
    PERMISSION_OVERRIDDEN,
    OVERRIDES_RESET,
)

__all__ = [
    "AuditEvent",
    "AuditLogger",
    "MemoryAuditLogger",
    "FileAuditLogger",
    "create_audit_logger",
    "LOGIN",
    "LOGIN_FAILED",
    "LOGOUT",
    "FORCE_LOGIN",
    "PACKAGE_ADDED",
    "PACKAGE_REMOVED",
    "PERMISSION_OVERRIDDEN",
    "OVERRIDES_RESET",
]
