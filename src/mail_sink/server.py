# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

Usage:
    uvicorn mail_sink.server:app --host 0.0.0.0 --port 1080

Configuration is read from ``MAILSINK_CONFIG`` (default ``mail-sink.ini``)
and ``MAILSINK_*`` environment variables; see :mod:`mail_sink.config`. The
SMTP listener starts and stops with the application lifespan.
"""

from __future__ import annotations

import os

from .api import create_sink_app
from .config import load_config
from .logger import configure_logging

configure_logging(os.getenv("MAILSINK_LOG_LEVEL"))

app = create_sink_app(load_config())
