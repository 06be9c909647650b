# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exceptions raised by the mail sink.

Transaction-scoped errors (``SenderRejected``, ``AuthenticationFailed``,
``ParseFailed``) are turned into SMTP replies by :mod:`mail_sink.smtp` and
never leave the connection that caused them. ``ConfigurationInvalid`` is
raised while loading settings and aborts startup.
"""


class MailSinkError(Exception):
    """Base class for every error raised by the sink."""


class SenderRejected(MailSinkError):
    """The MAIL FROM address is not on the whitelist."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Invalid email from: {address}")


class AuthenticationFailed(MailSinkError):
    """Offered SMTP credentials match no configured pair."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class ParseFailed(MailSinkError):
    """The DATA payload could not be turned into a message."""


class ConfigurationInvalid(MailSinkError):
    """A configuration value is malformed."""
