"""
Metrics Collection for Reconciliation Runs

Collects and exposes metrics for:
- Runs (started, completed)
- Payment outcomes (per reconciliation status)
- Issues detected (per issue type)
- Processing times (average, p95)

Metrics are kept in-memory for the life of the process.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Any


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class RunMetrics:
    """Metrics for reconciliation runs."""
    started: int = 0
    completed: int = 0
    payments_processed: int = 0


@dataclass
class OutcomeMetrics:
    """Counts of payment outcomes and detected issues."""
    by_status: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    by_issue_type: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Raw timing samples (keep last N for percentile calculations)
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for reconciliation runs.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_run_started("run-123")
        metrics.record_payment_outcome("Reconciled", ["missing_ledger_entry"])
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.runs = RunMetrics()
        self.outcomes = OutcomeMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def reset(self):
        """Clear all collected metrics."""
        with self._lock:
            self.runs = RunMetrics()
            self.outcomes = OutcomeMetrics()
            self.timings = TimingMetrics()

    # =========================================================================
    # Run Metrics
    # =========================================================================

    def record_run_started(self, run_id: str):
        """Record a run start."""
        with self._lock:
            self.runs.started += 1

    def record_run_completed(self, run_id: str, payment_count: int, duration_ms: float = None):
        """Record a run completion."""
        with self._lock:
            self.runs.completed += 1
            self.runs.payments_processed += payment_count
            if duration_ms is not None:
                self.timings.add_sample(duration_ms, "run")

    # =========================================================================
    # Outcome Metrics
    # =========================================================================

    def record_payment_outcome(self, status: str, issue_types: List[str]):
        """Record the final status and issues of one payment."""
        with self._lock:
            self.outcomes.by_status[status] += 1
            for issue_type in issue_types:
                self.outcomes.by_issue_type[issue_type] += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "runs": {
                    "started": self.runs.started,
                    "completed": self.runs.completed,
                    "payments_processed": self.runs.payments_processed,
                },
                "outcomes": {
                    "by_status": dict(self.outcomes.by_status),
                    "by_issue_type": dict(self.outcomes.by_issue_type),
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_run_started(run_id: str):
    """Record a run start."""
    get_metrics().record_run_started(run_id)


def record_run_completed(run_id: str, payment_count: int, duration_ms: float = None):
    """Record a run completion."""
    get_metrics().record_run_completed(run_id, payment_count, duration_ms)


def record_payment_outcome(status: str, issue_types: List[str]):
    """Record one payment's outcome."""
    get_metrics().record_payment_outcome(status, issue_types)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
