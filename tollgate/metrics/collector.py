"""
Prometheus metrics for Tollgate.

Counts permission checks, permission map rebuilds and login attempts.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import time

from prometheus_client import (
    Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
)


logger = logging.getLogger(__name__)


@dataclass
class MetricConfig:
    """Configuration for metrics collection."""
    enabled: bool = True
    namespace: str = "tollgate"


class MetricsCollector:
    """Metrics collector for one or more Auth instances."""

    def __init__(self, config: MetricConfig = None, registry: CollectorRegistry = None):
        """
        Initialize metrics collector.

        Args:
            config: Metrics configuration
            registry: Registry to register into; a private one by default
        """
        self.config = config or MetricConfig()
        self.registry = registry or CollectorRegistry()
        ns = self.config.namespace

        self.permission_checks = Counter(
            f'{ns}_permission_checks_total',
            'Total number of permission checks',
            ['auth', 'result'],
            registry=self.registry
        )

        self.permission_rebuilds = Counter(
            f'{ns}_permission_rebuilds_total',
            'Total number of effective permission map rebuilds',
            ['auth'],
            registry=self.registry
        )

        self.rebuild_latency = Histogram(
            f'{ns}_permission_rebuild_duration_seconds',
            'Time spent rebuilding a user permission map, storage calls included',
            ['auth'],
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
            registry=self.registry
        )

        self.login_attempts = Counter(
            f'{ns}_login_attempts_total',
            'Total number of login attempts',
            ['auth', 'status'],
            registry=self.registry
        )

        logger.debug("Metrics collector initialized")

    def record_check(self, auth_name: str, allowed: bool) -> None:
        if not self.config.enabled:
            return
        self.permission_checks.labels(
            auth=auth_name,
            result='allowed' if allowed else 'denied'
        ).inc()

    def record_login(self, auth_name: str, success: bool) -> None:
        if not self.config.enabled:
            return
        self.login_attempts.labels(
            auth=auth_name,
            status='success' if success else 'failure'
        ).inc()

    @contextmanager
    def time_rebuild(self, auth_name: str):
        """Count a rebuild and time the enclosed block."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            if self.config.enabled:
                self.permission_rebuilds.labels(auth=auth_name).inc()
                self.rebuild_latency.labels(auth=auth_name).observe(
                    time.perf_counter() - start_time
                )

    def export(self) -> bytes:
        """Metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST
