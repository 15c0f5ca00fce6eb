"""Prometheus metrics for document processing."""

from prometheus_client import Counter, Histogram

# Job lifecycle
job_runs_total = Counter(
    "job_runs_total",
    "Processing runs by terminal outcome",
    ["outcome"],
)

job_start_rejections_total = Counter(
    "job_start_rejections_total",
    "Rejected start/cancel requests",
    ["reason"],
)

# Structured output recovery
structured_parse_total = Counter(
    "structured_parse_total",
    "Structured output parses by the strategy that succeeded",
    ["strategy"],
)

# Boundary resolution
boundary_resolution_total = Counter(
    "boundary_resolution_total",
    "Boundary suggestions by how they were located",
    ["method"],
)

# Generation calls
generation_latency_ms = Histogram(
    "generation_latency_ms",
    "Text generation latency in milliseconds",
    ["purpose", "outcome"],
    buckets=[250, 500, 1000, 2000, 5000, 10000, 20000, 40000, 80000, 160000],
)


class PrometheusJobMetrics:
    """Prometheus-based job metrics implementation."""

    def record_outcome(self, outcome: str) -> None:
        """Count a run reaching a terminal outcome."""
        job_runs_total.labels(outcome=outcome).inc()

    def inc_rejection(self, reason: str) -> None:
        """Count a rejected job control request."""
        job_start_rejections_total.labels(reason=reason).inc()
