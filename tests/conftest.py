"""Shared fixtures for mail-sink tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mail_sink.models import Address, MessageRecord


@pytest.fixture
def make_record():
    """Factory building MessageRecord instances with sensible defaults."""

    def _make(
        subject: str = "Hello",
        date: datetime | None = None,
        to: tuple[str, ...] = ("x@a.com",),
        sender: str = "sender@example.com",
        headers: dict | None = None,
    ) -> MessageRecord:
        return MessageRecord(
            date=date or datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
            sender=Address(name=sender, addresses=(sender,)),
            to=tuple(Address(name=addr, addresses=(addr,)) for addr in to),
            subject=subject,
            text=f"Body of {subject}",
            headers=headers,
        )

    return _make
