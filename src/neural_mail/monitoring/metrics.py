"""Custom Prometheus metrics for Neural Mail.

Exposed at /metrics when the local API runs with PROMETHEUS_ENABLED.
Useful signals:
- inference_requests_total{outcome="unavailable"} (endpoint down or model missing)
- inference_requests_total{outcome="degraded"} (endpoint answering without text)
- categorization_failures_total (per-message skips in the background worker)
- bridge_deliveries_total{outcome="dropped"} (results for torn-down sessions)
"""

from prometheus_client import Counter, Histogram

# === Inference Metrics ===

inference_requests_total = Counter(
    "inference_requests_total",
    "Total gateway calls by final outcome",
    ["outcome"],
)
"""
Gateway calls by final outcome.

Labels:
- outcome: success, degraded (fallback text), unavailable (retries exhausted), cancelled
"""

inference_attempts_total = Counter(
    "inference_attempts_total",
    "Total HTTP attempts against the inference endpoint",
    ["result"],
)
"""
Individual attempts, including retries.

Labels:
- result: ok, transport_error, decode_error
"""

inference_latency_seconds = Histogram(
    "inference_latency_seconds",
    "End-to-end gateway latency in seconds (all attempts and backoff)",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 180.0],
)

# === Categorization Metrics ===

categorizations_total = Counter(
    "categorizations_total",
    "Categories assigned by the background worker",
    ["category"],
)

categorization_failures_total = Counter(
    "categorization_failures_total",
    "Messages skipped by the background worker because inference failed",
)

# === Result Bridge Metrics ===

bridge_deliveries_total = Counter(
    "bridge_deliveries_total",
    "Terminal deliveries posted to the presentation context",
    ["operation", "outcome"],
)
"""
Labels:
- operation: fetch, query, categorize, summarize, reply, chat, update
- outcome: success, failure, dropped (session no longer live)
"""
