"""Tests for the message record model."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from mail_sink.models import Address, MessageRecord


def test_record_is_frozen(make_record):
    record = make_record()
    with pytest.raises(ValidationError):
        record.subject = "changed"


def test_ids_are_unique(make_record):
    assert make_record().id != make_record().id


def test_naive_date_becomes_utc():
    record = MessageRecord(date=datetime(2024, 1, 15, 10, 0))
    assert record.date.tzinfo == timezone.utc


def test_json_uses_from_key(make_record):
    data = make_record(sender="s@x.com").to_json()
    assert "sender" not in data
    assert data["from"] == {"name": "s@x.com", "addresses": ["s@x.com"]}
    assert data["to"] == [{"name": "x@a.com", "addresses": ["x@a.com"]}]


def test_populates_sender_by_alias():
    record = MessageRecord.model_validate({
        "date": "2024-01-15T00:00:00Z",
        "from": {"name": "A", "addresses": ["a@x.com"]},
    })
    assert record.sender_addresses() == ["a@x.com"]


def test_headers_present_when_set(make_record):
    data = make_record(headers={"X-A": "1"}).to_json()
    assert data["headers"] == {"X-A": "1"}


def test_recipient_addresses_flatten_groups():
    record = MessageRecord(
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        to=(Address(name="team", addresses=("a@t.com", "b@t.com")), Address(addresses=("c@t.com",))),
    )
    assert record.recipient_addresses() == ["a@t.com", "b@t.com", "c@t.com"]
