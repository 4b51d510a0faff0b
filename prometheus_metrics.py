"""
Discord AutoReply - Prometheus Metrics
Provides Prometheus-compatible metrics for monitoring the reply loop.
"""

from prometheus_client import Counter, Histogram, Gauge, start_http_server

import logger as log


# --- Gate Metrics ---

# Every inbound message, labelled by what the gate decided
messages_seen = Counter(
    'autoreply_messages_seen_total',
    'Inbound messages seen by the reply loop',
    ['outcome']  # outcome: handled, busy, disarmed, inactive_channel, own_message, ...
)

gate_busy = Gauge(
    'autoreply_gate_busy',
    'Whether a reply cycle is currently in flight (1) or not (0)'
)


# --- Reply Metrics ---

reply_cycles = Counter(
    'autoreply_reply_cycles_total',
    'Completed reply cycles',
    ['success']
)

reply_parts_sent = Counter(
    'autoreply_reply_parts_sent_total',
    'Outbound messages sent (one per paragraph)'
)

reply_duration = Histogram(
    'autoreply_reply_duration_seconds',
    'Time from accepting a message to the last part being sent',
    buckets=[1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0]
)


# --- API Metrics ---

api_requests = Counter(
    'autoreply_api_requests_total',
    'Total number of provider requests made',
    ['provider', 'status']  # status: success, error, timeout
)

api_request_duration = Histogram(
    'autoreply_api_request_duration_seconds',
    'Provider request duration in seconds',
    ['provider'],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)


# --- Error Metrics ---

errors_total = Counter(
    'autoreply_errors_total',
    'Failures in the reply cycle',
    ['error_type']  # error_type: missing_credential, provider_http, network_blocked, ...
)


# --- Metrics Manager ---

class MetricsManager:
    """Centralized metrics management for the reply loop."""

    def __init__(self, metrics_port: int = 8000):
        self.metrics_port = metrics_port
        self._started = False

    def start_metrics_server(self, port: int = None):
        """Start the Prometheus metrics HTTP server."""
        if self._started:
            return
        if port is not None:
            self.metrics_port = port

        try:
            start_http_server(self.metrics_port)
            self._started = True
            log.info(f"Prometheus metrics server started on port {self.metrics_port}")
        except Exception as e:
            log.error(f"Failed to start metrics server: {e}")

    def record_message(self, outcome: str):
        messages_seen.labels(outcome=outcome).inc()

    def set_busy(self, busy: bool):
        gate_busy.set(1 if busy else 0)

    def record_reply(self, success: bool, parts: int, duration_seconds: float):
        """Record a finished reply cycle."""
        reply_cycles.labels(success=str(success)).inc()
        if parts:
            reply_parts_sent.inc(parts)
        reply_duration.observe(duration_seconds)

    def record_api_request(self, provider: str, status: str, duration_seconds: float):
        """Record a provider request."""
        api_requests.labels(provider=provider, status=status).inc()
        api_request_duration.labels(provider=provider).observe(duration_seconds)

    def record_error(self, error_type: str):
        errors_total.labels(error_type=error_type).inc()


# Global metrics manager instance
metrics_manager = MetricsManager()
