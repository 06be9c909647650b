# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""aiosmtpd adapter for the intake coordinator.

aiosmtpd owns the wire protocol (command parsing, dot-unstuffing, STARTTLS,
AUTH LOGIN/PLAIN). This module plugs the coordinator into its hook points
and maps coordinator errors to SMTP replies:

==========================  ==========================================
Coordinator outcome         SMTP reply
==========================  ==========================================
sender accepted             ``250 OK``
SenderRejected              ``550 Invalid email from: <address>``
login accepted              ``235 2.7.0 Authentication successful``
AuthenticationFailed        ``535 5.7.8 Authentication credentials invalid``
message stored              ``250 Message accepted for delivery``
ParseFailed                 ``554 Transaction failed: <reason>``
==========================  ==========================================

Example::

    controller = create_controller(config, coordinator)
    controller.start()
    ...
    controller.stop()
"""

from __future__ import annotations

import ssl

from aiosmtpd.controller import Controller
from aiosmtpd.smtp import SMTP, AuthResult, Envelope, LoginPassword, Session

from .config import SinkConfig
from .errors import AuthenticationFailed, ParseFailed, SenderRejected
from .intake import IntakeCoordinator
from .logger import get_logger

logger = get_logger("SmtpAdapter")


class SinkHandler:
    """aiosmtpd handler forwarding MAIL and DATA to the coordinator."""

    def __init__(self, coordinator: IntakeCoordinator):
        self.coordinator = coordinator

    async def handle_MAIL(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
        address: str,
        mail_options: list[str],
    ) -> str:
        try:
            self.coordinator.on_mail_from(address, session)
        except SenderRejected as e:
            return f"550 {e}"
        envelope.mail_from = address
        envelope.mail_options.extend(mail_options)
        return "250 OK"

    async def handle_DATA(self, server: SMTP, session: Session, envelope: Envelope) -> str:
        content = envelope.original_content or envelope.content
        if isinstance(content, str):
            content = content.encode("utf-8", errors="surrogateescape")
        try:
            await self.coordinator.on_data(content, session)
        except ParseFailed as e:
            return f"554 Transaction failed: {e}"
        return "250 Message accepted for delivery"


class SinkAuthenticator:
    """aiosmtpd authenticator backed by the session policy."""

    def __init__(self, coordinator: IntakeCoordinator):
        self.coordinator = coordinator

    def __call__(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
        mechanism: str,
        auth_data,
    ) -> AuthResult:
        if not isinstance(auth_data, LoginPassword):
            return AuthResult(success=False, handled=False)
        username = auth_data.login.decode("utf-8", errors="replace")
        password = auth_data.password.decode("utf-8", errors="replace")
        try:
            identity = self.coordinator.on_auth(username, password, session)
        except AuthenticationFailed:
            return AuthResult(success=False, handled=False)
        return AuthResult(success=True, auth_data=identity)


def build_tls_context(cert: str, key: str) -> ssl.SSLContext:
    """Server-side context used for STARTTLS."""
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(cert, key)
    return context


def create_controller(config: SinkConfig, coordinator: IntakeCoordinator) -> Controller:
    """Build (without starting) the SMTP listener for ``config``.

    AUTH is always advertised; it becomes mandatory before MAIL FROM only
    when SMTP credentials are configured. Plain-text AUTH is allowed since
    a capture sink is usually reached without TLS.
    """
    tls_context = None
    if config.tls_enabled:
        tls_context = build_tls_context(config.tls_cert, config.tls_key)
    return Controller(
        SinkHandler(coordinator),
        hostname=config.smtp_host,
        port=config.smtp_port,
        authenticator=SinkAuthenticator(coordinator),
        auth_required=coordinator.policy.auth_required,
        auth_require_tls=False,
        tls_context=tls_context,
    )
