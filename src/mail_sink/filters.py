# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Typed filter applied to stored records by the retrieval endpoint.

Every field is optional and a filter with no fields matches everything.
Present constraints are AND-combined:

- ``since`` / ``until``: inclusive bounds on the record date, compared as
  absolute instants (naive values are taken as UTC).
- ``to``: at least one recipient address equals the value.
- ``from``: at least one sender address equals the value.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import MessageRecord, ensure_aware


class EmailFilter(BaseModel):
    """Optional-field filter over :class:`MessageRecord`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    since: datetime | None = None
    until: datetime | None = None
    to: str | None = None
    sender: str | None = Field(default=None, alias="from")

    @field_validator("since", "until")
    @classmethod
    def bounds_are_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @field_validator("since", "until", "to", "sender", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def matches(self, record: MessageRecord) -> bool:
        if self.since is not None and record.date < self.since:
            return False
        if self.until is not None and record.date > self.until:
            return False
        if self.to is not None and self.to not in record.recipient_addresses():
            return False
        if self.sender is not None and self.sender not in record.sender_addresses():
            return False
        return True

    def apply(self, records: Iterable[MessageRecord]) -> list[MessageRecord]:
        """Matching records, original order preserved."""
        return [record for record in records if self.matches(record)]
