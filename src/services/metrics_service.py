"""
Metrics collection service with Prometheus integration.
"""

import time
from contextlib import contextmanager

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollectionService:
    """Prometheus-based metrics for vendor calls and uploads."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self):
        # Create custom registry for isolation
        self.registry = CollectorRegistry()

        self.aps_requests_total = Counter(
            'aps_requests_total',
            'Total number of calls made to the APS API',
            ['operation', 'outcome'],
            registry=self.registry
        )

        self.aps_request_duration_seconds = Histogram(
            'aps_request_duration_seconds',
            'Duration of calls made to the APS API in seconds',
            ['operation'],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry
        )

        self.model_uploads_total = Counter(
            'model_uploads_total',
            'Total number of model upload attempts',
            ['outcome'],
            registry=self.registry
        )

    @contextmanager
    def track_aps_call(self, operation: str):
        """Time a vendor call and count its outcome."""
        start = time.perf_counter()
        outcome = "success"
        try:
            yield
        except Exception:
            outcome = "error"
            raise
        finally:
            self.aps_request_duration_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )
            self.aps_requests_total.labels(operation=operation, outcome=outcome).inc()

    def record_upload(self, outcome: str):
        self.model_uploads_total.labels(outcome=outcome).inc()

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text format."""
        return generate_latest(self.registry)


metrics_service = MetricsCollectionService()
