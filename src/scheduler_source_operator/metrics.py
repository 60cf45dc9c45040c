"""Prometheus metrics for the Scheduler Source Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "scheduler_source_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "scheduler_source_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "scheduler_source_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "scheduler_source_operator_resource_status_total",
    "Observed readiness of reconciled resources",
    ["kind", "status"],
)

ready_latency_seconds = Histogram(
    "scheduler_source_operator_ready_latency_seconds",
    "Time from creation until a resource first became ready",
    ["kind"],
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

# Sub-resource and job metrics
subresource_operations_total = Counter(
    "scheduler_source_operator_subresource_operations_total",
    "Total number of Topic and PullSubscription operations",
    ["kind", "operation", "result"],
)

job_phase_total = Counter(
    "scheduler_source_operator_job_phase_total",
    "Observed phases of notification jobs",
    ["action", "phase"],
)

# API call metrics
api_call_total = Counter(
    "scheduler_source_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "scheduler_source_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "scheduler_source_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
