# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Disposable SMTP capture sink with an HTTP inspection API.

Features:
    - SMTP listener (aiosmtpd) that accepts and parses every delivered message
    - Optional sender whitelist and SMTP credential checks
    - Bounded in-memory store keeping the 100 most recent messages
    - FastAPI endpoints to list (with date/sender/recipient filters) and clear
    - Optional HTTP Basic gate and Prometheus metrics

Example::

    from mail_sink.config import SinkConfig
    from mail_sink.service import MailSink
    from mail_sink.api import create_app

    sink = MailSink(SinkConfig(smtp_port=1025))
    app = create_app(sink)
"""

__version__ = "0.1.0"
