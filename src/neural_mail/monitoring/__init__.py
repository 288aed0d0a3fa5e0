"""Monitoring and metrics instrumentation for Neural Mail."""

from neural_mail.monitoring.metrics import (
    bridge_deliveries_total,
    categorization_failures_total,
    categorizations_total,
    inference_attempts_total,
    inference_latency_seconds,
    inference_requests_total,
)

__all__ = [
    "inference_requests_total",
    "inference_attempts_total",
    "inference_latency_seconds",
    "categorizations_total",
    "categorization_failures_total",
    "bridge_deliveries_total",
]
