"""
Metrics definitions for geonotify.

This module defines Prometheus metrics for monitoring
the location check and webhook delivery pipeline.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
location_checks = Counter(
    "location_checks_total",
    "Number of location checks processed",
    ["result"]
)

incidents_matched = Counter(
    "incidents_matched_total",
    "Number of incident matches produced by location checks"
)

enqueue_failures = Counter(
    "webhook_enqueue_failures_total",
    "Delivery tasks that could not be pushed to the queue"
)

deliveries = Counter(
    "webhook_deliveries_total",
    "Webhook delivery attempts by outcome",
    ["outcome"]
)

dequeue_errors = Counter(
    "webhook_dequeue_errors_total",
    "Errors raised while popping the delivery queue"
)

# 히스토그램 메트릭
match_seconds = Histogram(
    "geofence_match_duration_seconds",
    "Time spent matching a point against incidents",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5]
)

delivery_seconds = Histogram(
    "webhook_delivery_duration_seconds",
    "Outbound webhook request latency",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0]
)

# 게이지 메트릭
queue_depth = Gauge(
    "webhook_queue_depth",
    "Current number of tasks waiting in the delivery queue"
)

dead_letter_size = Gauge(
    "webhook_dead_letter_size",
    "Current number of dead-lettered delivery tasks"
)

dispatchers_running = Gauge(
    "webhook_dispatchers_running",
    "Number of dispatcher loops currently running"
)
