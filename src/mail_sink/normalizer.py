# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Turn parser output into the canonical stored record."""

from __future__ import annotations

from collections.abc import Iterable

from .models import MessageRecord
from .parser import ParsedMessage


def format_headers(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse ``(name, value)`` pairs into a mapping.

    A repeated header name keeps only its last value, so multiple
    ``Received`` lines collapse into the final one.
    """
    result: dict[str, str] = {}
    for name, value in pairs:
        result[name] = value
    return result


def normalize(parsed: ParsedMessage, include_headers: bool) -> MessageRecord:
    """Build a :class:`MessageRecord` from ``parsed``.

    Args:
        parsed: Output of :func:`mail_sink.parser.parse_message`.
        include_headers: When False the record carries no headers at all.
    """
    return MessageRecord(
        date=parsed.date,
        sender=parsed.sender,
        to=parsed.to,
        cc=parsed.cc,
        bcc=parsed.bcc,
        reply_to=parsed.reply_to,
        subject=parsed.subject,
        message_id=parsed.message_id,
        in_reply_to=parsed.in_reply_to,
        references=parsed.references,
        text=parsed.text,
        html=parsed.html,
        attachments=parsed.attachments,
        headers=format_headers(parsed.headers) if include_headers else None,
    )
