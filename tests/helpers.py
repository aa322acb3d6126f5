"""
ASGI helpers shared by the recoverer tests.
"""

from typing import Dict, List, Optional

from recoverer import panic

PANIC_ERROR = "this should never actually panic"

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


# ============================================================================
# ASGI Helpers
# ============================================================================


def make_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[List[tuple]] = None,
    scope_type: str = "http",
) -> dict:
    """Build a minimal ASGI scope."""
    raw_headers = []
    if headers:
        for name, value in headers:
            raw_headers.append(
                (name.encode("latin-1") if isinstance(name, str) else name,
                 value.encode("latin-1") if isinstance(value, str) else value)
            )
    return {
        "type": scope_type,
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query_string.encode("utf-8"),
        "headers": raw_headers,
        "scheme": "http",
        "server": ("127.0.0.1", 8000),
        "client": ("127.0.0.1", 12345),
        "root_path": "",
    }


def make_receive(body: bytes = b""):
    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}
    return receive


class ResponseCapture:
    """Captures what gets sent through ASGI ``send``."""

    def __init__(self):
        self.messages: list = []
        self.status: Optional[int] = None
        self.headers: Dict[str, str] = {}
        self.body = b""

    async def __call__(self, message: dict):
        self.messages.append(message)
        if message["type"] == "http.response.start":
            self.status = message["status"]
            for name, value in message.get("headers", []):
                self.headers[name.decode("latin-1").lower()] = value.decode("latin-1")
        elif message["type"] == "http.response.body":
            self.body += message.get("body", b"")


async def panicking_app(scope, receive, send):
    panic(PANIC_ERROR)


async def ok_app(scope, receive, send):
    await send({
        "type": "http.response.start",
        "status": 201,
        "headers": [(b"content-type", b"text/plain"), (b"x-inner", b"yes")],
    })
    await send({"type": "http.response.body", "body": b"created", "more_body": False})

