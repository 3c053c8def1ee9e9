"""
Observability Module for the Reconciliation Engine

Provides:
- Structured logging with correlation IDs
- Metrics collection (runs, payment outcomes, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_run_started,
    record_run_completed,
    record_payment_outcome,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_run_started",
    "record_run_completed",
    "record_payment_outcome",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
