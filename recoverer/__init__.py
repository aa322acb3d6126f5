"""
Recoverer - ASGI middleware that traps unhandled exceptions.

Instead of a reset connection the client receives a 500, either with the
bare status text or, when enabled, with the fault, its source location and
the stack trace as plain text or an HTML page.

- Options / default_options: what to log and what to show
- Recoverer / new / default_recoverer: the middleware and its factories
- panic / Panic / FaultValue: raising and describing faults
- expvar: exported diagnostic variables for the HTML report
"""

__version__ = "0.1.0"

from . import expvar
from .config import Interceptor, LogSink, Options, default_options
from .faults import (
    ConfigError,
    FaultKind,
    FaultValue,
    InterceptorRejection,
    Panic,
    RecovererError,
    panic,
    safe_str,
)
from .middleware import Recoverer, default_recoverer, new, write_log
from .pages import accepts_html, render_html, render_text
from .report import FaultReport

__all__ = [
    "__version__",
    # Middleware
    "Recoverer",
    "new",
    "default_recoverer",
    "write_log",
    # Configuration
    "Options",
    "default_options",
    "Interceptor",
    "LogSink",
    # Faults
    "Panic",
    "panic",
    "safe_str",
    "FaultKind",
    "FaultValue",
    "FaultReport",
    "RecovererError",
    "ConfigError",
    "InterceptorRejection",
    # Rendering
    "accepts_html",
    "render_text",
    "render_html",
    "expvar",
]
