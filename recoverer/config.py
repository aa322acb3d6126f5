"""
Recoverer options - what to log, what to show, and who decides.

Options are fixed when the middleware is built. They can be written out
in code or loaded from the environment with the same precedence the rest
of the stack uses: .env file < process environment < explicit overrides.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TextIO, Union

from dotenv import dotenv_values

from .expvar import Registry, default_registry
from .faults import ConfigError, FaultValue

# A sink is either a logging.Logger or anything with a ``write(str)`` method.
LogSink = Union[logging.Logger, TextIO]

# interceptor(scope, fault, file, line) -> None to allow display,
# or an exception describing why diagnostics must stay hidden.
Interceptor = Callable[
    [Dict[str, Any], FaultValue, str, int],
    Union[Optional[BaseException], Awaitable[Optional[BaseException]]],
]

_TRUE = ("true", "yes", "1", "on")
_FALSE = ("false", "no", "0", "off")


@dataclass
class Options:
    """
    Configuration passed to the recoverer.

    Attributes:
        logger: Where ``panic: <fault>\\n<stack>`` is written for every fault
        show: Render the fault and stack back to the client
        simple: Render plain text even when the client accepts HTML
        interceptor: Policy hook run before anything is rendered. It is
            called outside the trap; if it raises, the exception escapes
            the middleware and is the caller's problem.
        exported_vars: Registry snapshotted into the HTML report
        caller_depth: How many frames above the raise site the reported
            file/line is taken from (0 = the raising line)
    """
    logger: Optional[LogSink] = None
    show: bool = False
    simple: bool = False
    interceptor: Optional[Interceptor] = None
    exported_vars: Optional[Registry] = None
    caller_depth: int = 0

    def __post_init__(self):
        if self.logger is not None and not (
            isinstance(self.logger, logging.Logger) or hasattr(self.logger, "write")
        ):
            raise ConfigError(
                f"logger must be a logging.Logger or a writable stream, "
                f"got {type(self.logger).__name__}"
            )
        if self.interceptor is not None and not callable(self.interceptor):
            raise ConfigError("interceptor must be callable")
        if self.exported_vars is not None and not isinstance(self.exported_vars, Registry):
            raise ConfigError("exported_vars must be an expvar.Registry")
        if (
            isinstance(self.caller_depth, bool)
            or not isinstance(self.caller_depth, int)
            or self.caller_depth < 0
        ):
            raise ConfigError(f"caller_depth must be a non-negative int, got {self.caller_depth!r}")

    @classmethod
    def default(cls) -> "Options":
        """Hide everything from clients, log to stderr."""
        return cls(logger=sys.stderr, show=False)

    @classmethod
    def from_env(
        cls,
        prefix: str = "RECOVERER_",
        env_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "Options":
        """
        Build options from ``<prefix>*`` variables.

        Recognised keys: SHOW, SIMPLE, CALLER_DEPTH, LOG (``stderr``,
        ``stdout``, ``none`` or a logger name) and EXPORT_VARS. Keyword
        overrides are applied last and accept any Options field.
        """
        values: Dict[str, str] = {}
        if env_file:
            for key, value in dotenv_values(env_file).items():
                if key.startswith(prefix) and value is not None:
                    values[key[len(prefix):].lower()] = value

        env = os.environ if environ is None else environ
        for key, value in env.items():
            if key.startswith(prefix):
                values[key[len(prefix):].lower()] = value

        kwargs: Dict[str, Any] = {"logger": sys.stderr}
        if "show" in values:
            kwargs["show"] = _parse_bool("show", values["show"])
        if "simple" in values:
            kwargs["simple"] = _parse_bool("simple", values["simple"])
        if "caller_depth" in values:
            try:
                kwargs["caller_depth"] = int(values["caller_depth"])
            except ValueError:
                raise ConfigError(
                    f"caller_depth must be an integer, got {values['caller_depth']!r}"
                ) from None
        if "log" in values:
            kwargs["logger"] = _parse_sink(values["log"])
        if _parse_bool("export_vars", values.get("export_vars", "false")):
            kwargs["exported_vars"] = default_registry

        kwargs.update(overrides)
        return cls(**kwargs)


def default_options() -> Options:
    """Shortcut for :meth:`Options.default`."""
    return Options.default()


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_sink(value: str) -> Optional[LogSink]:
    lowered = value.strip().lower()
    if lowered == "stderr":
        return sys.stderr
    if lowered == "stdout":
        return sys.stdout
    if lowered in ("", "none", "off"):
        return None
    return logging.getLogger(value.strip())
