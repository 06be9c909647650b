# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""FastAPI application factory for inspecting captured mail.

Routes:
    - ``GET /api/emails``: captured messages, newest first, optionally
      filtered by ``since``, ``until``, ``to`` and ``from``
    - ``DELETE /api/emails``: drop every captured message
    - ``GET /metrics``: Prometheus metrics
    - ``GET /health``: liveness probe (never authenticated)

When the sink is configured with web credentials, the API and metrics
routes require HTTP Basic authentication and answer ``401`` with a
``WWW-Authenticate: Basic`` challenge otherwise.

Example:
    Creating and running the API application::

        from mail_sink.api import create_app
        from mail_sink.service import MailSink

        sink = MailSink()
        app = create_app(sink)
        uvicorn.run(app, host="0.0.0.0", port=1080)
"""

from __future__ import annotations

import secrets
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncContextManager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from .config import CredentialPair, SinkConfig
from .filters import EmailFilter
from .logger import get_logger
from .service import MailSink

logger = get_logger("MailSinkApi")

basic_scheme = HTTPBasic(auto_error=False)


def get_sink(request: Request) -> MailSink:
    return request.app.state.sink


def _same(offered: str, expected: str) -> bool:
    return secrets.compare_digest(offered.encode("utf-8"), expected.encode("utf-8"))


async def require_credentials(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(basic_scheme),
) -> None:
    """Enforce HTTP Basic auth when the sink has web credentials.

    Both parts are always compared so a wrong username costs the same as a
    wrong password.
    """
    expected: CredentialPair | None = request.app.state.web_credentials
    if expected is None:
        return
    if credentials is not None:
        user_ok = _same(credentials.username, expected.username)
        password_ok = _same(credentials.password, expected.password)
        if user_ok and password_ok:
            return
    raise HTTPException(
        status.HTTP_401_UNAUTHORIZED,
        "Invalid or missing credentials",
        headers={"WWW-Authenticate": "Basic"},
    )


def parse_filter(
    since: str | None = None,
    until: str | None = None,
    to: str | None = None,
    sender: str | None = Query(default=None, alias="from"),
) -> EmailFilter:
    """Build the typed filter from query parameters, once per request."""
    try:
        return EmailFilter.model_validate(
            {"since": since, "until": until, "to": to, "from": sender}
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


def create_app(
    sink: MailSink,
    lifespan: Callable[[FastAPI], AsyncContextManager] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    sink:
        The :class:`MailSink` whose store is exposed.
    lifespan:
        Optional lifespan context manager for startup/shutdown events.

    Returns
    -------
    FastAPI
        A configured application ready to be served by uvicorn.
    """
    api = FastAPI(title="Mail Sink", lifespan=lifespan)
    api.state.sink = sink
    api.state.web_credentials = sink.config.web_credentials

    api.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )

    router = APIRouter(prefix="/api", tags=["emails"], dependencies=[Depends(require_credentials)])

    @api.get("/health")
    async def health():
        """Health check endpoint (no authentication required)."""
        return {"status": "ok"}

    @router.get("/emails")
    async def list_emails(
        email_filter: EmailFilter = Depends(parse_filter),
        svc: MailSink = Depends(get_sink),
    ):
        """Captured messages matching the filter, newest first."""
        records = svc.list_emails(email_filter)
        return JSONResponse([record.to_json() for record in records])

    @router.delete("/emails")
    async def clear_emails(svc: MailSink = Depends(get_sink)):
        """Drop every captured message."""
        svc.clear_emails()
        return Response(status_code=status.HTTP_200_OK)

    @api.get("/metrics", dependencies=[Depends(require_credentials)])
    async def metrics(svc: MailSink = Depends(get_sink)):
        """Expose Prometheus metrics collected by the sink."""
        return Response(content=svc.metrics.generate_latest(), media_type="text/plain; version=0.0.4")

    api.include_router(router)

    static_dir = sink.config.static_dir
    if static_dir:
        if Path(static_dir).is_dir():
            api.mount("/", StaticFiles(directory=static_dir, html=True), name="ui")
        else:
            logger.warning(f"Static directory {static_dir} not found, UI disabled")

    return api


def create_sink_app(config: SinkConfig) -> FastAPI:
    """Application owning a new :class:`MailSink` for ``config``.

    The SMTP listener is started by the lifespan handler, so it lives
    exactly as long as the ASGI server.
    """
    sink = MailSink(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        sink.start()
        try:
            yield
        finally:
            sink.stop()

    return create_app(sink, lifespan=lifespan)
