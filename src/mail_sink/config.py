# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for the mail sink.

Settings come from an INI file with environment variables as fallbacks.
The file path is taken from the ``path`` argument, then ``MAILSINK_CONFIG``,
then ``mail-sink.ini`` in the working directory; a missing file simply
leaves every value to the environment or the defaults.

Example:
    Configuration file format (mail-sink.ini)::

        [smtp]
        host = 0.0.0.0
        port = 1025
        # comma separated user:pass list; empty makes SMTP AUTH optional
        auth = alice:secret,bob:hunter2
        # comma separated sender list; empty accepts every sender
        whitelist = app@example.com
        tls_cert = /etc/mail-sink/cert.pem
        tls_key = /etc/mail-sink/key.pem

        [http]
        host = 0.0.0.0
        port = 1080
        auth = admin:password
        static_dir = /srv/mail-sink/build

        [messages]
        headers = true

Environment variables:
    MAILSINK_CONFIG, MAILSINK_SMTP_HOST, MAILSINK_SMTP_PORT,
    MAILSINK_SMTP_AUTH, MAILSINK_WHITELIST, MAILSINK_TLS_CERT,
    MAILSINK_TLS_KEY, MAILSINK_HTTP_HOST, MAILSINK_HTTP_PORT,
    MAILSINK_WEB_AUTH, MAILSINK_STATIC_DIR, MAILSINK_HEADERS,
    MAILSINK_LOG_LEVEL
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from .errors import ConfigurationInvalid
from .logger import get_logger
from .models import MAX_MESSAGES

logger = get_logger("SinkConfig")

DEFAULT_CONFIG_FILE = "mail-sink.ini"


class CredentialPair(NamedTuple):
    """A username/password pair valid for SMTP or HTTP authentication."""

    username: str
    password: str


@dataclass
class SinkConfig:
    """Runtime settings of a sink instance.

    Attributes:
        smtp_host: Address the SMTP listener binds to.
        smtp_port: SMTP listener port.
        smtp_credentials: Valid SMTP logins; empty makes AUTH optional.
        whitelist: Accepted sender addresses; empty accepts every sender.
        tls_cert: PEM certificate enabling STARTTLS (with ``tls_key``).
        tls_key: PEM private key for ``tls_cert``.
        http_host: Address the HTTP API binds to.
        http_port: HTTP API port.
        web_credentials: Basic auth pair guarding the API, if any.
        static_dir: Directory served at ``/`` for a web UI, if any.
        include_headers: Keep a header mapping on stored records.
        capacity: Number of messages retained.
    """

    smtp_host: str = "0.0.0.0"
    smtp_port: int = 1025
    smtp_credentials: tuple[CredentialPair, ...] = ()
    whitelist: frozenset[str] = field(default_factory=frozenset)
    tls_cert: str | None = None
    tls_key: str | None = None

    http_host: str = "0.0.0.0"
    http_port: int = 1080
    web_credentials: CredentialPair | None = None
    static_dir: str | None = None

    include_headers: bool = True
    capacity: int = MAX_MESSAGES

    def __post_init__(self) -> None:
        if bool(self.tls_cert) != bool(self.tls_key):
            raise ConfigurationInvalid("tls_cert and tls_key must be set together")

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert and self.tls_key)


def _parse_pair(entry: str) -> CredentialPair:
    username, sep, password = entry.partition(":")
    if not sep or not username or not password:
        raise ConfigurationInvalid(
            f"Invalid credentials {entry!r}: expected USERNAME:PASSWORD format"
        )
    return CredentialPair(username, password)


def parse_credential_pairs(value: str | None) -> tuple[CredentialPair, ...]:
    """Parse a comma separated ``user:pass`` list.

    Raises:
        ConfigurationInvalid: If an entry lacks the colon or a part is empty.
    """
    if not value or not value.strip():
        return ()
    return tuple(_parse_pair(entry.strip()) for entry in value.split(",") if entry.strip())


def parse_web_credentials(value: str | None) -> CredentialPair | None:
    """Parse the single ``user:pass`` pair guarding the HTTP API."""
    if not value or not value.strip():
        return None
    return _parse_pair(value.strip())


def parse_whitelist(value: str | None) -> frozenset[str]:
    """Parse a comma separated sender list, ignoring blanks."""
    if not value:
        return frozenset()
    return frozenset(item.strip() for item in value.split(",") if item.strip())


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationInvalid(f"Invalid boolean value: {value!r}")


def _parse_port(value: str | None, default: int, name: str) -> int:
    if value is None or not str(value).strip():
        return default
    try:
        port = int(value)
    except ValueError as e:
        raise ConfigurationInvalid(f"Invalid {name}: {value!r}") from e
    if not 0 <= port <= 65535:
        raise ConfigurationInvalid(f"Invalid {name}: {port} out of range")
    return port


def load_config(path: str | os.PathLike | None = None) -> SinkConfig:
    """Load settings from an INI file with environment fallbacks.

    Raises:
        ConfigurationInvalid: If any value is malformed.
    """
    config_path = Path(path or os.getenv("MAILSINK_CONFIG", DEFAULT_CONFIG_FILE))
    parser = configparser.ConfigParser(interpolation=None)
    if config_path.exists():
        try:
            parser.read(config_path)
        except configparser.Error as e:
            raise ConfigurationInvalid(f"Invalid config file {config_path}: {e}") from e
        logger.info(f"Loaded configuration from {config_path}")
    elif path is not None:
        raise ConfigurationInvalid(f"Config file not found: {config_path}")

    def get(section: str, option: str, env: str, fallback: str | None = None) -> str | None:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return os.getenv(env, fallback)

    return SinkConfig(
        smtp_host=get("smtp", "host", "MAILSINK_SMTP_HOST", "0.0.0.0"),
        smtp_port=_parse_port(get("smtp", "port", "MAILSINK_SMTP_PORT"), 1025, "SMTP port"),
        smtp_credentials=parse_credential_pairs(get("smtp", "auth", "MAILSINK_SMTP_AUTH")),
        whitelist=parse_whitelist(get("smtp", "whitelist", "MAILSINK_WHITELIST")),
        tls_cert=get("smtp", "tls_cert", "MAILSINK_TLS_CERT") or None,
        tls_key=get("smtp", "tls_key", "MAILSINK_TLS_KEY") or None,
        http_host=get("http", "host", "MAILSINK_HTTP_HOST", "0.0.0.0"),
        http_port=_parse_port(get("http", "port", "MAILSINK_HTTP_PORT"), 1080, "HTTP port"),
        web_credentials=parse_web_credentials(get("http", "auth", "MAILSINK_WEB_AUTH")),
        static_dir=get("http", "static_dir", "MAILSINK_STATIC_DIR") or None,
        include_headers=_parse_bool(get("messages", "headers", "MAILSINK_HEADERS"), True),
    )
