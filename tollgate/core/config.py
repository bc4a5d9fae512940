"""
Configuration module for Tollgate.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import json
import os

import yaml
from passlib.registry import get_crypt_handler

from ..types.errors import ConfigurationError


MIN_COST = 4
MAX_COST = 31


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class AuthOptions:
    """Options for an Auth instance"""
    cost: int = 8
    hash_schemes: List[str] = field(default_factory=lambda: ["bcrypt"])
    audit_enabled: bool = True
    metrics_enabled: bool = True

    @classmethod
    def from_env(cls, prefix: str = "TOLLGATE_") -> "AuthOptions":
        """Create options from environment variables, defaults for unset ones"""
        options = cls()

        cost = os.getenv(f"{prefix}COST")
        if cost is not None:
            try:
                options.cost = int(cost)
            except ValueError:
                raise ConfigurationError(
                    "cost must be an integer", config_key="cost", config_value=cost
                )

        schemes = os.getenv(f"{prefix}HASH_SCHEMES")
        if schemes is not None:
            options.hash_schemes = [s.strip() for s in schemes.split(",") if s.strip()]

        audit = os.getenv(f"{prefix}AUDIT_ENABLED")
        if audit is not None:
            options.audit_enabled = _parse_bool(audit)

        metrics = os.getenv(f"{prefix}METRICS_ENABLED")
        if metrics is not None:
            options.metrics_enabled = _parse_bool(metrics)

        return options

    @classmethod
    def from_file(cls, file_path: str) -> "AuthOptions":
        """Load options from a JSON or YAML file"""
        path = Path(file_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        with open(path, 'r', encoding='utf-8') as f:
            suffix = path.suffix.lower()
            if suffix == '.json':
                data = json.load(f)
            elif suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {suffix}")

        return cls().merged(data or {})

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "AuthOptions":
        """Return a copy with ``overrides`` applied on top of these options"""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides or {}) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown option(s): {', '.join(unknown)}", config_key=unknown[0]
            )
        return replace(self, **dict(overrides or {}))

    def validate(self) -> bool:
        """Validate the options"""
        if isinstance(self.cost, bool) or not isinstance(self.cost, int):
            raise ConfigurationError(
                "cost must be an integer", config_key="cost", config_value=self.cost
            )
        if not MIN_COST <= self.cost <= MAX_COST:
            raise ConfigurationError(
                f"cost must be between {MIN_COST} and {MAX_COST}",
                config_key="cost",
                config_value=self.cost
            )
        if not self.hash_schemes:
            raise ConfigurationError("hash_schemes must not be empty", config_key="hash_schemes")
        for scheme in self.hash_schemes:
            try:
                get_crypt_handler(scheme)
            except (KeyError, TypeError):
                raise ConfigurationError(
                    f"Unknown hash scheme: {scheme}",
                    config_key="hash_schemes",
                    config_value=scheme
                )
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cost': self.cost,
            'hash_schemes': list(self.hash_schemes),
            'audit_enabled': self.audit_enabled,
            'metrics_enabled': self.metrics_enabled,
        }
