# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Intake coordinator: SMTP lifecycle hooks for the capture pipeline.

The coordinator is transport-agnostic. The SMTP adapter in
:mod:`mail_sink.smtp` calls one method per lifecycle point and turns the
result (or the raised error) into a protocol reply:

- ``on_mail_from``: sender check, raises :class:`SenderRejected`
- ``on_auth``: login check, raises :class:`AuthenticationFailed`
- ``on_data``: parse, normalize, store; raises :class:`ParseFailed`

Nothing reaches the store unless ``on_data`` completes, so a connection
dropped mid-transaction leaves the store untouched.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .errors import AuthenticationFailed, ParseFailed, SenderRejected
from .logger import get_logger
from .models import MessageRecord
from .normalizer import normalize
from .parser import ParsedMessage, parse_message
from .policy import SessionPolicy
from .prometheus import SinkMetrics
from .store import MessageStore

logger = get_logger("IntakeCoordinator")

Parser = Callable[[bytes], Awaitable[ParsedMessage]]


class IntakeCoordinator:
    """Runs each accepted SMTP transaction through policy, parser and store.

    Attributes:
        policy: Session policy shared by every connection.
        store: Destination of parsed records.
        include_headers: Whether stored records keep a header mapping.
        metrics: Intake counters.
    """

    def __init__(
        self,
        policy: SessionPolicy,
        store: MessageStore,
        include_headers: bool = True,
        metrics: SinkMetrics | None = None,
        parser: Parser = parse_message,
    ):
        self.policy = policy
        self.store = store
        self.include_headers = include_headers
        self.metrics = metrics or SinkMetrics()
        self._parse = parser

    def on_mail_from(self, address: str, session: Any = None) -> None:
        """Validate the envelope sender of a new transaction."""
        try:
            self.policy.evaluate_sender(address)
        except SenderRejected:
            logger.warning(f"Rejected sender {address!r} from {_peer(session)}")
            self.metrics.inc_rejected()
            raise

    def on_auth(self, username: str, password: str, session: Any = None) -> str:
        """Validate a login; returns the identity kept on the session."""
        try:
            return self.policy.evaluate_auth(username, password)
        except AuthenticationFailed:
            self.metrics.inc_auth_failure()
            raise

    async def on_data(self, content: bytes, session: Any = None) -> MessageRecord:
        """Parse ``content`` once and store the resulting record.

        Raises:
            ParseFailed: The payload is malformed; nothing is stored.
        """
        try:
            parsed = await self._parse(content)
        except ParseFailed as e:
            logger.warning(f"Parse failed for message from {_peer(session)}: {e}")
            self.metrics.inc_parse_failure()
            raise
        record = normalize(parsed, self.include_headers)
        self.store.insert(record)
        self.metrics.inc_received()
        self.metrics.set_stored(len(self.store))
        logger.info(f"Captured message {record.id} subject={record.subject!r}")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(json.dumps(record.to_json(), indent=2))
        return record

    def clear(self) -> int:
        """Empty the store and refresh the stored gauge."""
        removed = self.store.clear()
        self.metrics.set_stored(0)
        return removed


def _peer(session: Any) -> str:
    peer = getattr(session, "peer", None)
    return str(peer) if peer else "unknown peer"
