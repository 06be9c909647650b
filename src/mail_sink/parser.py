# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Parse raw SMTP DATA payloads into structured messages.

Parsing is delegated to the standard library ``email`` package using
``email.policy.default``; this module only extracts the fields the sink
keeps. Header entries are returned as the native ordered list of
``(name, value)`` pairs; collapsing them is the normalizer's job.

Example::

    parsed = await parse_message(envelope.content)
    parsed.headers   # [("From", "a@x.com"), ("Received", "..."), ...]
"""

from __future__ import annotations

import asyncio
import base64
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email import policy
from email.headerregistry import AddressHeader
from email.message import EmailMessage
from email.parser import BytesParser

from .errors import ParseFailed
from .logger import get_logger
from .models import Address, Attachment, ensure_aware

logger = get_logger("MessageParser")


@dataclass
class ParsedMessage:
    """Structured view of one message as produced by :func:`parse_message`."""

    headers: list[tuple[str, str]]
    date: datetime
    sender: Address
    to: list[Address] = field(default_factory=list)
    cc: list[Address] = field(default_factory=list)
    bcc: list[Address] = field(default_factory=list)
    reply_to: list[Address] = field(default_factory=list)
    subject: str | None = None
    message_id: str | None = None
    in_reply_to: str | None = None
    references: list[str] = field(default_factory=list)
    text: str | None = None
    html: str | None = None
    attachments: list[Attachment] = field(default_factory=list)


def _unfold(value: str) -> str:
    return re.sub(r"\r?\n", "", value).strip()


def _fetch(msg: EmailMessage, name: str, raw: str):
    """Header object for ``raw``, or its unfolded text when the header is unparseable."""
    try:
        return msg.policy.header_fetch_parse(name, raw)
    except Exception as e:
        # stdlib header parsers raise arbitrary errors on garbage values
        logger.debug(f"Keeping raw {name} header: {e!r}")
        return _unfold(raw)


def _get(msg: EmailMessage, name: str):
    """First ``name`` header, parsed when possible; None when absent."""
    for key, raw in msg.raw_items():
        if key.lower() == name.lower():
            return _fetch(msg, key, raw)
    return None


def _address_list(msg: EmailMessage, name: str) -> list[Address]:
    """One Address per group (or single mailbox) of an address header."""
    header = _get(msg, name)
    if header is None:
        return []
    if not isinstance(header, AddressHeader):
        return [Address(name=str(header), addresses=())]
    result = []
    for group in header.groups:
        addrs = tuple(a.addr_spec for a in group.addresses)
        if group.display_name is not None:
            display = group.display_name
        elif group.addresses:
            display = group.addresses[0].display_name
        else:
            display = ""
        result.append(Address(name=display, addresses=addrs))
    return result


def _sender(msg: EmailMessage) -> Address:
    header = _get(msg, "From")
    if header is None:
        return Address()
    addresses: tuple[str, ...] = ()
    if isinstance(header, AddressHeader):
        addresses = tuple(a.addr_spec for a in header.addresses)
    return Address(name=str(header), addresses=addresses)


def _date(msg: EmailMessage) -> datetime:
    header = _get(msg, "Date")
    value = getattr(header, "datetime", None) if header is not None else None
    if value is None:
        return datetime.now(timezone.utc)
    return ensure_aware(value)


def _text_content(part: EmailMessage | None) -> str | None:
    if part is None:
        return None
    try:
        return part.get_content()
    except (LookupError, UnicodeDecodeError):
        # unknown or lying charset
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")


def _attachments(msg: EmailMessage) -> list[Attachment]:
    attachments = []
    for part in msg.iter_attachments():
        payload = part.get_payload(decode=True) or b""
        attachments.append(Attachment(
            filename=part.get_filename(),
            content_type=part.get_content_type(),
            size=len(payload),
            content_id=_optional(part, "Content-ID"),
            content=base64.b64encode(payload).decode("ascii"),
        ))
    return attachments


def _optional(msg: EmailMessage, name: str) -> str | None:
    value = _get(msg, name)
    return str(value) if value is not None else None


def parse_bytes(content: bytes) -> ParsedMessage:
    """Parse a complete RFC 5322 message.

    Raises:
        ParseFailed: If the payload is empty or carries no header section.
    """
    if not content or not content.strip():
        raise ParseFailed("empty message")
    try:
        msg = BytesParser(policy=policy.default).parsebytes(content)
        headers = [(name, str(_fetch(msg, name, raw))) for name, raw in msg.raw_items()]
        if not headers:
            raise ParseFailed("message has no headers")
        return ParsedMessage(
            headers=headers,
            date=_date(msg),
            sender=_sender(msg),
            to=_address_list(msg, "To"),
            cc=_address_list(msg, "Cc"),
            bcc=_address_list(msg, "Bcc"),
            reply_to=_address_list(msg, "Reply-To"),
            subject=_optional(msg, "Subject"),
            message_id=_optional(msg, "Message-ID"),
            in_reply_to=_optional(msg, "In-Reply-To"),
            references=str(_get(msg, "References") or "").split(),
            text=_text_content(msg.get_body(preferencelist=("plain",))),
            html=_text_content(msg.get_body(preferencelist=("html",))),
            attachments=_attachments(msg),
        )
    except ParseFailed:
        raise
    except Exception as e:
        raise ParseFailed(f"malformed message: {e}") from e


async def parse_message(content: bytes) -> ParsedMessage:
    """Parse ``content`` off the event loop; see :func:`parse_bytes`."""
    return await asyncio.to_thread(parse_bytes, content)
