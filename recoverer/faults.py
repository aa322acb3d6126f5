"""
Recoverer faults - Fault values and the panic primitive.

Defines:
- Panic: exception that carries an arbitrary raised value
- panic(): raise a Panic from the fault site
- FaultKind / FaultValue: tagged view over whatever was raised
- RecovererError hierarchy (config and interceptor signals)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, NoReturn, Optional


# ============================================================================
# Errors
# ============================================================================

class RecovererError(Exception):
    """Base class for errors raised by the recoverer package itself."""


class ConfigError(RecovererError):
    """Raised when recoverer options fail validation."""


class InterceptorRejection(RecovererError):
    """
    Convenience error for interceptors.

    An interceptor may return an instance of this (or any other exception)
    to keep diagnostics hidden for the current request.
    """

    def __init__(self, reason: str = "diagnostics withheld"):
        super().__init__(reason)
        self.reason = reason


# ============================================================================
# Panic
# ============================================================================

class Panic(Exception):
    """
    Exception carrying an arbitrary value raised at a fault site.

    Python only raises exceptions, so ``panic("boom")`` wraps the value in a
    Panic; the middleware unwraps it again when building the report.
    """

    def __init__(self, value: Any):
        super().__init__(value)
        self.value = value

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return self.value
        return repr(self.value)


def panic(value: Any) -> NoReturn:
    """Raise ``value`` as a fault."""
    raise Panic(value)


def safe_str(value: Any) -> str:
    """``str(value)``, or a placeholder when ``__str__`` itself fails."""
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__qualname__}>"


# ============================================================================
# FaultValue
# ============================================================================

class FaultKind(str, Enum):
    """What kind of value was raised."""
    STRING = "string"     # panic("message")
    ERROR = "error"       # an exception instance
    UNKNOWN = "unknown"   # panic(42), panic({...}), ...


@dataclass(frozen=True)
class FaultValue:
    """
    Tagged view over a trapped fault.

    Attributes:
        kind: Which variant the raised value falls into
        value: The raised value (unwrapped from Panic where applicable)
        exception: The exception that actually unwound the stack
    """
    kind: FaultKind
    value: Any
    exception: Optional[BaseException] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FaultValue":
        if isinstance(exc, Panic):
            inner = exc.value
            if isinstance(inner, str):
                return cls(FaultKind.STRING, inner, exc)
            if isinstance(inner, BaseException):
                return cls(FaultKind.ERROR, inner, exc)
            return cls(FaultKind.UNKNOWN, inner, exc)
        return cls(FaultKind.ERROR, exc, exc)

    def __str__(self) -> str:
        if self.kind is FaultKind.STRING:
            return self.value
        if self.kind is FaultKind.ERROR:
            name = type(self.value).__qualname__
            message = safe_str(self.value)
            return f"{name}: {message}" if message else name
        try:
            return repr(self.value)
        except Exception:
            return f"<unrepresentable {type(self.value).__qualname__}>"
