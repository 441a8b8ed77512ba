"""
Prometheus metrics for the license service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# License metrics
license_operations_total = Counter(
    "license_operations_total",
    "Client license operations by outcome",
    ["operation", "outcome", "reason"],
)

license_transitions_total = Counter(
    "license_transitions_total",
    "License status transitions and operator actions",
    ["transition"],
)

rate_limit_denials_total = Counter(
    "rate_limit_denials_total",
    "Requests denied by the rate limiter",
    ["bucket"],
)

ip_blocks_total = Counter(
    "ip_blocks_total",
    "Client IPs blocked after repeated failures",
)

# Collaborator metrics
collaborator_failures_total = Counter(
    "collaborator_failures_total",
    "Failures of fire-and-forget collaborators",
    ["collaborator"],
)
