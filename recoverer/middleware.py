"""
Recoverer middleware - trap unhandled exceptions in an ASGI app.

Wrap any ASGI application; when it raises, the client gets a 500 instead
of a dropped connection. Depending on Options the body is the bare status
text, a plain text report, or an HTML report.
"""

from __future__ import annotations

import inspect
import logging
from http import HTTPStatus
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .config import LogSink, Options
from .faults import safe_str
from .pages import accepts_html, extract_request_info, render_html, render_text
from .report import FaultReport

Scope = Dict[str, Any]
Message = Dict[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

_STATUS = HTTPStatus.INTERNAL_SERVER_ERROR

logger = logging.getLogger("recoverer.middleware")


def write_log(sink: Optional[LogSink], text: str) -> None:
    """Write ``text`` to a stream sink, or as one ERROR record to a Logger."""
    if sink is None:
        return
    try:
        if isinstance(sink, logging.Logger):
            sink.error("%s", text.rstrip("\n"))
            return
        sink.write(text)
        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()
    except Exception:
        logger.error("Failed to write fault log", exc_info=True)


def _header(scope: Scope, name: bytes) -> Optional[str]:
    values = [
        value.decode("latin-1")
        for key, value in scope.get("headers", ())
        if key.lower() == name
    ]
    return ",".join(values) if values else None


class _SendTracker:
    """Records how far the inner app got with its response."""

    __slots__ = ("_send", "started", "finished")

    def __init__(self, send: Send):
        self._send = send
        self.started = False
        self.finished = False

    async def __call__(self, message: Message) -> None:
        kind = message.get("type")
        if kind == "http.response.start":
            self.started = True
        elif kind == "http.response.body" and not message.get("more_body", False):
            self.finished = True
        await self._send(message)


class Recoverer:
    """
    ASGI middleware that converts unhandled exceptions into 500 responses.

    Only ``Exception`` subclasses are trapped. Cancellation, SystemExit and
    KeyboardInterrupt keep propagating. Non-HTTP scopes are passed through
    untouched.
    """

    def __init__(self, app: ASGIApp, options: Optional[Options] = None):
        self.app = app
        self.options = options if options is not None else Options.default()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        tracker = _SendTracker(send)
        try:
            await self.app(scope, receive, tracker)
        except Exception as exc:
            await self._recover(exc, scope, tracker)

    # ------------------------------------------------------------------
    # Fault handling
    # ------------------------------------------------------------------

    async def _recover(self, exc: Exception, scope: Scope, tracker: _SendTracker) -> None:
        options = self.options
        report = FaultReport.capture(exc, options.caller_depth)
        write_log(options.logger, f"panic: {report.fault}\n{report.stack}")

        show = options.show
        if options.interceptor is not None:
            rejection = options.interceptor(scope, report.fault, report.file, report.line)
            if inspect.isawaitable(rejection):
                rejection = await rejection
            if rejection is not None:
                write_log(options.logger, f"recoverer: interceptor rejected display: {safe_str(rejection)}\n")
                show = False

        if tracker.started:
            logger.warning(
                "Fault after response start on %s %s; response truncated",
                scope.get("method"), scope.get("path"),
            )
            if not tracker.finished:
                await tracker({"type": "http.response.body", "body": b"", "more_body": False})
            return

        if not show:
            await self._send_opaque(tracker)
            return

        try:
            body, content_type = self._render(report, scope)
        except Exception:
            logger.error("Failed to render fault report, sending bare 500", exc_info=True)
            await self._send_opaque(tracker)
            return

        await self._send_response(
            tracker,
            body.encode("utf-8"),
            [
                (b"content-type", content_type),
                (b"cache-control", b"no-store"),
                (b"x-content-type-options", b"nosniff"),
            ],
        )

    def _render(self, report: FaultReport, scope: Scope) -> Tuple[str, bytes]:
        if self.options.simple or not accepts_html(_header(scope, b"accept")):
            return render_text(report), b"text/plain; charset=utf-8"

        if self.options.exported_vars is not None:
            report = report.with_exported_vars(self.options.exported_vars.snapshot())
        return (
            render_html(report, request_info=extract_request_info(scope)),
            b"text/html; charset=utf-8",
        )

    async def _send_opaque(self, send: Send) -> None:
        await self._send_response(
            send,
            _STATUS.phrase.encode("utf-8"),
            [
                (b"content-type", b"text/plain; charset=utf-8"),
                (b"x-content-type-options", b"nosniff"),
            ],
        )

    @staticmethod
    async def _send_response(send: Send, body: bytes, headers: List[Tuple[bytes, bytes]]) -> None:
        headers = headers + [(b"content-length", str(len(body)).encode("latin-1"))]
        await send({
            "type": "http.response.start",
            "status": int(_STATUS),
            "headers": headers,
        })
        await send({"type": "http.response.body", "body": body, "more_body": False})


# ============================================================================
# Factories
# ============================================================================

def new(options: Options) -> Callable[[ASGIApp], Recoverer]:
    """Return a wrapper that applies ``options`` to any ASGI app."""
    def wrap(app: ASGIApp) -> Recoverer:
        return Recoverer(app, options)
    return wrap


def default_recoverer() -> Callable[[ASGIApp], Recoverer]:
    """Wrapper with safe defaults: log to stderr, never show details."""
    return new(Options.default())
