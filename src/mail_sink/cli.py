# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for mail-sink.

Usage:
    mail-sink serve
    mail-sink serve --config /etc/mail-sink.ini --smtp-port 2525
    mail-sink emails list --to someone@example.com
    mail-sink emails list --since 2024-01-01T00:00:00 --json
    mail-sink emails clear

Example:
    $ MAILSINK_SMTP_AUTH=app:secret mail-sink serve --http-port 8025
    $ mail-sink emails list --url http://localhost:8025
"""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from typing import Any, Optional

import click
import requests
import uvicorn
from rich.console import Console
from rich.table import Table

from . import __version__
from .api import create_sink_app
from .client import MailSinkClient
from .config import SinkConfig, load_config, parse_credential_pairs, parse_whitelist
from .errors import ConfigurationInvalid
from .logger import configure_logging

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def build_config(config_path: Optional[str], **overrides: Any) -> SinkConfig:
    """Load the configuration and apply command line overrides."""
    config = load_config(config_path)
    changes = {key: value for key, value in overrides.items() if value is not None}
    if "smtp_credentials" in changes:
        changes["smtp_credentials"] = parse_credential_pairs(changes["smtp_credentials"])
    if "whitelist" in changes:
        changes["whitelist"] = parse_whitelist(changes["whitelist"])
    return dataclasses.replace(config, **changes)


@click.group()
@click.version_option(__version__)
def main() -> None:
    """mail-sink: capture SMTP traffic and inspect it over HTTP."""


@main.command("serve")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="INI configuration file.")
@click.option("--smtp-host", default=None, help="SMTP bind address (default: 0.0.0.0).")
@click.option("--smtp-port", type=int, default=None, help="SMTP port (default: 1025).")
@click.option("--http-host", default=None, help="HTTP bind address (default: 0.0.0.0).")
@click.option("--http-port", type=int, default=None, help="HTTP port (default: 1080).")
@click.option("--smtp-auth", default=None, help="Comma separated user:pass list for SMTP AUTH.")
@click.option("--whitelist", default=None, help="Comma separated list of accepted senders.")
@click.option("--headers/--no-headers", "include_headers", default=None,
              help="Keep message headers on captured records.")
@click.option("--log-level", default=None, help="Logging level (default: INFO).")
def serve(
    config_path: Optional[str],
    smtp_host: Optional[str],
    smtp_port: Optional[int],
    http_host: Optional[str],
    http_port: Optional[int],
    smtp_auth: Optional[str],
    whitelist: Optional[str],
    include_headers: Optional[bool],
    log_level: Optional[str],
) -> None:
    """Run the SMTP listener and the HTTP API."""
    configure_logging(log_level or os.getenv("MAILSINK_LOG_LEVEL"))
    try:
        config = build_config(
            config_path,
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            http_host=http_host,
            http_port=http_port,
            smtp_credentials=smtp_auth,
            whitelist=whitelist,
            include_headers=include_headers,
        )
    except ConfigurationInvalid as e:
        print_error(str(e))
        sys.exit(1)

    console.print(f"SMTP on [bold]{config.smtp_host}:{config.smtp_port}[/bold], "
                  f"HTTP on [bold]http://{config.http_host}:{config.http_port}[/bold]")
    uvicorn.run(create_sink_app(config), host=config.http_host, port=config.http_port)


@main.group("emails")
@click.option("--url", default="http://localhost:1080", show_default=True, envvar="MAILSINK_URL",
              help="Base URL of the running sink.")
@click.option("--user", default=None, envvar="MAILSINK_USER", help="HTTP Basic username.")
@click.option("--password", default=None, envvar="MAILSINK_PASSWORD", help="HTTP Basic password.")
@click.pass_context
def emails(ctx: click.Context, url: str, user: Optional[str], password: Optional[str]) -> None:
    """Inspect captured messages on a running sink."""
    ctx.obj = MailSinkClient(url, user=user, password=password)


@emails.command("list")
@click.option("--since", default=None, help="Only messages dated at or after this ISO timestamp.")
@click.option("--until", default=None, help="Only messages dated at or before this ISO timestamp.")
@click.option("--to", "to", default=None, help="Only messages sent to this address.")
@click.option("--from", "from_", default=None, help="Only messages sent from this address.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_obj
def emails_list(client: MailSinkClient, since: Optional[str], until: Optional[str],
                to: Optional[str], from_: Optional[str], as_json: bool) -> None:
    """List captured messages, newest first."""
    try:
        items = client.emails.list(since=since, until=until, to=to, from_=from_)
    except requests.RequestException as e:
        print_error(f"Cannot list messages: {e}")
        sys.exit(1)

    if as_json:
        print_json([item.raw for item in items])
        return

    if not items:
        console.print("[dim]No messages captured.[/dim]")
        return

    table = Table(title=f"Captured messages ({len(items)})")
    table.add_column("Date", style="dim")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Subject", style="bold")
    table.add_column("Att.", justify="right")
    for item in items:
        table.add_row(
            item.date or "",
            ", ".join(item.sender),
            ", ".join(item.to),
            item.subject or "",
            str(item.attachments),
        )
    console.print(table)


@emails.command("clear")
@click.pass_obj
def emails_clear(client: MailSinkClient) -> None:
    """Drop every captured message."""
    try:
        client.emails.clear()
    except requests.RequestException as e:
        print_error(f"Cannot clear messages: {e}")
        sys.exit(1)
    print_success("Messages cleared")


if __name__ == "__main__":
    main()
