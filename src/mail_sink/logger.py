# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging helper for the mail sink.

Handlers, level and format are configured once by the entry point
(``logging.basicConfig``); modules only ask for named loggers.

Example::

    from mail_sink.logger import get_logger

    logger = get_logger("Intake")
    logger.info("Message stored")
"""

import logging


def get_logger(name: str = "MailSink") -> logging.Logger:
    """Return the standard library logger bound to ``name``."""
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger for command line and ASGI entry points.

    Args:
        level: Level name such as ``"DEBUG"``. Unknown names fall back to INFO.
    """
    level_name = (level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
