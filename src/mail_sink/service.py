# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""The mail sink service object.

:class:`MailSink` owns the components shared by the SMTP and HTTP sides:
the message store, the session policy, the intake coordinator, the metrics
and the aiosmtpd controller. The HTTP app receives the same instance, so
both paths operate on one store.

Example::

    sink = MailSink(load_config())
    sink.start()        # SMTP listener runs in its own thread
    app = create_app(sink)
    ...
    sink.stop()
"""

from __future__ import annotations

from .config import SinkConfig
from .filters import EmailFilter
from .intake import IntakeCoordinator
from .logger import get_logger
from .models import MessageRecord
from .policy import SessionPolicy
from .prometheus import SinkMetrics
from .smtp import create_controller
from .store import MessageStore

logger = get_logger("MailSink")


class MailSink:
    """SMTP capture service with a bounded in-memory store.

    Attributes:
        config: Settings the sink was built from.
        store: Captured messages, newest first.
        policy: Sender whitelist and SMTP credential policy.
        metrics: Prometheus metrics.
        intake: Coordinator invoked by the SMTP adapter.
    """

    def __init__(self, config: SinkConfig | None = None):
        self.config = config or SinkConfig()
        self.store = MessageStore(self.config.capacity)
        self.policy = SessionPolicy(
            whitelist=self.config.whitelist,
            credentials=self.config.smtp_credentials,
        )
        self.metrics = SinkMetrics()
        self.intake = IntakeCoordinator(
            self.policy,
            self.store,
            include_headers=self.config.include_headers,
            metrics=self.metrics,
        )
        self._controller = None

    @property
    def running(self) -> bool:
        return self._controller is not None

    def start(self) -> None:
        """Start the SMTP listener; no-op when already running."""
        if self._controller is not None:
            return
        controller = create_controller(self.config, self.intake)
        controller.start()
        self._controller = controller
        auth = "required" if self.policy.auth_required else "optional"
        logger.info(
            f"SMTP server listening on {self.config.smtp_host}:{self.config.smtp_port} "
            f"(auth {auth}, whitelist {len(self.policy.whitelist) or 'off'})"
        )

    def stop(self) -> None:
        """Stop the SMTP listener; the store is left as is."""
        if self._controller is None:
            return
        self._controller.stop()
        self._controller = None
        logger.info("SMTP server stopped")

    def list_emails(self, email_filter: EmailFilter | None = None) -> list[MessageRecord]:
        """Stored records matching ``email_filter`` (all when None), newest first."""
        records = self.store.list_all()
        if email_filter is None:
            return records
        return email_filter.apply(records)

    def clear_emails(self) -> int:
        """Drop every stored record."""
        removed = self.intake.clear()
        logger.info(f"Cleared {removed} message(s)")
        return removed
