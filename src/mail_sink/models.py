# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for captured messages.

Models:
    - Address: Display form plus the underlying address strings
    - Attachment: Attachment metadata and base64 content
    - MessageRecord: Canonical, immutable stored representation of one email
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

MAX_MESSAGES = 100


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive timestamps as UTC so every comparison is absolute."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Address(BaseModel):
    """A sender or recipient reference.

    A single logical entry may resolve to several raw addresses, as with an
    RFC 5322 group (``team: a@x.com, b@x.com;``).

    Attributes:
        name: Display form of the entry (display name or group name).
        addresses: Underlying ``local@domain`` strings.
    """

    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(default="", description="Display name or group name")]
    addresses: Annotated[
        tuple[str, ...],
        Field(default=(), description="Underlying address strings")
    ]


class Attachment(BaseModel):
    """A non-inline MIME part carried by a captured message."""

    model_config = ConfigDict(frozen=True)

    filename: str | None = None
    content_type: str = "application/octet-stream"
    size: int = 0
    content_id: str | None = None
    content: Annotated[str, Field(default="", description="Base64 encoded payload")]


class MessageRecord(BaseModel):
    """Canonical representation of one captured email.

    Records are frozen once built. ``headers`` is either a mapping of header
    name to value or ``None``; a ``None`` value is dropped from the
    serialized form entirely rather than emitted as ``null``.

    Attributes:
        id: Identifier assigned at capture time.
        date: Composition timestamp (timezone aware).
        sender: The ``From`` address, serialized as ``from``.
        to: Ordered ``To`` recipients.
        cc: Ordered ``Cc`` recipients.
        bcc: Ordered ``Bcc`` recipients.
        reply_to: Ordered ``Reply-To`` addresses.
        subject: Decoded subject line.
        message_id: ``Message-ID`` header value.
        in_reply_to: ``In-Reply-To`` header value.
        references: Message ids listed in ``References``.
        text: Plain text body, if any.
        html: HTML body, if any.
        attachments: Attachment parts.
        headers: Header mapping or ``None`` when headers are disabled.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    date: datetime
    sender: Address = Field(default_factory=Address, alias="from")
    to: tuple[Address, ...] = ()
    cc: tuple[Address, ...] = ()
    bcc: tuple[Address, ...] = ()
    reply_to: tuple[Address, ...] = ()
    subject: str | None = None
    message_id: str | None = None
    in_reply_to: str | None = None
    references: tuple[str, ...] = ()
    text: str | None = None
    html: str | None = None
    attachments: tuple[Attachment, ...] = ()
    headers: dict[str, Any] | None = None

    @field_validator("date")
    @classmethod
    def date_is_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_serializer(mode="wrap")
    def _omit_absent_headers(self, handler):
        data = handler(self)
        if self.headers is None:
            data.pop("headers", None)
        return data

    def recipient_addresses(self) -> list[str]:
        """All address strings found in ``to``, in order."""
        return [addr for entry in self.to for addr in entry.addresses]

    def sender_addresses(self) -> list[str]:
        """All address strings carried by ``from``."""
        return list(self.sender.addresses)

    def to_json(self) -> dict[str, Any]:
        """JSON-ready dict using wire names (``from`` instead of ``sender``)."""
        return self.model_dump(mode="json", by_alias=True)
