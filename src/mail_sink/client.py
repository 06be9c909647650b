# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Python client for a running mail sink.

Usage in REPL:
    >>> from mail_sink.client import MailSinkClient
    >>> sink = MailSinkClient("http://localhost:1080", user="admin", password="secret")
    >>> sink.emails.list(to="someone@example.com")
    [Email(id='4f3c...', subject='Welcome', sender=['noreply@app.test'], ...)]
    >>> sink.emails.clear()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import requests


@dataclass
class Email:
    """Summary of one captured message as returned by the API."""

    id: str
    date: Optional[str] = None
    subject: Optional[str] = None
    sender: List[str] = field(default_factory=list)
    to: List[str] = field(default_factory=list)
    text: Optional[str] = None
    attachments: int = 0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Email":
        """Create an Email from an API record."""
        sender = data.get("from") or {}
        return cls(
            id=data.get("id", ""),
            date=data.get("date"),
            subject=data.get("subject"),
            sender=list(sender.get("addresses", [])),
            to=[addr for entry in data.get("to", []) for addr in entry.get("addresses", [])],
            text=data.get("text"),
            attachments=len(data.get("attachments", [])),
            raw=data,
        )


def _as_param(value: Union[str, datetime, None]) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class EmailsAPI:
    """Captured message operations."""

    def __init__(self, client: "MailSinkClient"):
        self._client = client

    def list(
        self,
        since: Union[str, datetime, None] = None,
        until: Union[str, datetime, None] = None,
        to: Optional[str] = None,
        from_: Optional[str] = None,
    ) -> List[Email]:
        """Captured messages, newest first, filtered server side."""
        params = {
            "since": _as_param(since),
            "until": _as_param(until),
            "to": to,
            "from": from_,
        }
        params = {k: v for k, v in params.items() if v}
        data = self._client._get("/api/emails", params=params)
        return [Email.from_dict(item) for item in data]

    def clear(self) -> None:
        """Drop every captured message."""
        self._client._delete("/api/emails")


class MailSinkClient:
    """Client for the mail sink HTTP API."""

    def __init__(
        self,
        url: str = "http://localhost:1080",
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30,
    ):
        self.url = url.rstrip("/")
        self.auth = (user, password or "") if user else None
        self.timeout = timeout
        self.emails = EmailsAPI(self)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        resp = requests.get(f"{self.url}{path}", params=params, auth=self.auth, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _delete(self, path: str) -> None:
        resp = requests.delete(f"{self.url}{path}", auth=self.auth, timeout=self.timeout)
        resp.raise_for_status()

    def health(self) -> bool:
        """True when the server answers its health probe."""
        try:
            return self._get("/health").get("status") == "ok"
        except requests.RequestException:
            return False

    def __repr__(self) -> str:
        return f"<MailSinkClient '{self.url}'>"
