"""Tests for the intake coordinator."""

import types
from email.message import EmailMessage

import pytest

from mail_sink.errors import AuthenticationFailed, ParseFailed, SenderRejected
from mail_sink.intake import IntakeCoordinator
from mail_sink.policy import SessionPolicy
from mail_sink.prometheus import SinkMetrics
from mail_sink.store import MessageStore


def raw_message(subject="Hi", sender="app@example.com", to="user@example.com") -> bytes:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    msg["Date"] = "Mon, 15 Jan 2024 10:30:00 +0000"
    msg["Received"] = "from a"
    msg["Received"] = "from b"
    msg.set_content("body")
    return msg.as_bytes()


def make_coordinator(whitelist=(), credentials=(), include_headers=True, capacity=100):
    return IntakeCoordinator(
        SessionPolicy(whitelist=whitelist, credentials=credentials),
        MessageStore(capacity),
        include_headers=include_headers,
        metrics=SinkMetrics(),
    )


SESSION = types.SimpleNamespace(peer=("127.0.0.1", 50000))


def test_on_mail_from_accepts_whitelisted_sender():
    coordinator = make_coordinator(whitelist={"app@example.com"})
    coordinator.on_mail_from("app@example.com", SESSION)


def test_on_mail_from_rejects_and_counts():
    coordinator = make_coordinator(whitelist={"app@example.com"})
    with pytest.raises(SenderRejected):
        coordinator.on_mail_from("spam@example.com", SESSION)
    assert b"mailsink_rejected_total 1.0" in coordinator.metrics.generate_latest()


def test_on_auth_returns_identity():
    coordinator = make_coordinator(credentials=[("u", "p")])
    assert coordinator.on_auth("u", "p", SESSION) == "u"


def test_on_auth_failure_counts():
    coordinator = make_coordinator(credentials=[("u", "p")])
    with pytest.raises(AuthenticationFailed):
        coordinator.on_auth("u", "bad", SESSION)
    assert b"mailsink_auth_failures_total 1.0" in coordinator.metrics.generate_latest()


@pytest.mark.asyncio
async def test_on_data_stores_normalized_record():
    coordinator = make_coordinator()

    record = await coordinator.on_data(raw_message("Welcome"), SESSION)

    assert coordinator.store.list_all() == [record]
    assert record.subject == "Welcome"
    assert record.headers["Received"] == "from b"
    output = coordinator.metrics.generate_latest()
    assert b"mailsink_received_total 1.0" in output
    assert b"mailsink_stored_messages 1.0" in output


@pytest.mark.asyncio
async def test_on_data_without_headers():
    coordinator = make_coordinator(include_headers=False)
    record = await coordinator.on_data(raw_message(), SESSION)
    assert record.headers is None


@pytest.mark.asyncio
async def test_parse_failure_stores_nothing():
    coordinator = make_coordinator()
    with pytest.raises(ParseFailed):
        await coordinator.on_data(b"", SESSION)
    assert coordinator.store.list_all() == []
    assert b"mailsink_parse_failures_total 1.0" in coordinator.metrics.generate_latest()


@pytest.mark.asyncio
async def test_custom_parser_is_awaited_once():
    calls = []

    async def failing_parser(content):
        calls.append(content)
        raise ParseFailed("boom")

    coordinator = IntakeCoordinator(SessionPolicy(), MessageStore(), parser=failing_parser)
    with pytest.raises(ParseFailed, match="boom"):
        await coordinator.on_data(b"raw", SESSION)
    assert calls == [b"raw"]


@pytest.mark.asyncio
async def test_store_stays_bounded_through_intake():
    coordinator = make_coordinator(capacity=3)
    for i in range(5):
        await coordinator.on_data(raw_message(f"msg-{i}"), SESSION)
    assert [r.subject for r in coordinator.store.list_all()] == ["msg-4", "msg-3", "msg-2"]


@pytest.mark.asyncio
async def test_clear_resets_gauge():
    coordinator = make_coordinator()
    await coordinator.on_data(raw_message(), SESSION)
    assert coordinator.clear() == 1
    assert coordinator.store.list_all() == []
    assert b"mailsink_stored_messages 0.0" in coordinator.metrics.generate_latest()


@pytest.mark.asyncio
async def test_on_data_captures_message_with_unparseable_header():
    coordinator = make_coordinator()
    content = b"From: a@x.com\r\nTo: b@x.com\r\nMessage-ID: <\r\n\r\nbody\r\n"

    record = await coordinator.on_data(content, SESSION)

    assert coordinator.store.list_all() == [record]
    assert record.message_id == "<"
