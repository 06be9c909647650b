# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for the mail sink.

All metrics use the ``mailsink_`` prefix.

Metrics exposed:
    - ``mailsink_received_total``: Messages parsed and stored.
    - ``mailsink_rejected_total``: MAIL FROM commands refused by the whitelist.
    - ``mailsink_auth_failures_total``: Failed SMTP logins.
    - ``mailsink_parse_failures_total``: DATA payloads that failed to parse.
    - ``mailsink_stored_messages``: Messages currently held in the store.

Example:
    Accessing metrics via the REST API::

        GET /metrics
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class SinkMetrics:
    """Counters and gauge describing SMTP intake.

    Each instance owns its registry so several sinks (or tests) can coexist
    in one process.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.received = Counter(
            "mailsink_received_total",
            "Messages captured",
            registry=self.registry,
        )
        self.rejected = Counter(
            "mailsink_rejected_total",
            "Senders rejected by the whitelist",
            registry=self.registry,
        )
        self.auth_failures = Counter(
            "mailsink_auth_failures_total",
            "Failed SMTP logins",
            registry=self.registry,
        )
        self.parse_failures = Counter(
            "mailsink_parse_failures_total",
            "Messages that could not be parsed",
            registry=self.registry,
        )
        self.stored = Gauge(
            "mailsink_stored_messages",
            "Messages currently stored",
            registry=self.registry,
        )

    def inc_received(self) -> None:
        self.received.inc()

    def inc_rejected(self) -> None:
        self.rejected.inc()

    def inc_auth_failure(self) -> None:
        self.auth_failures.inc()

    def inc_parse_failure(self) -> None:
        self.parse_failures.inc()

    def set_stored(self, value: int) -> None:
        self.stored.set(value)

    def generate_latest(self) -> bytes:
        """Export all metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
