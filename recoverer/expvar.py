"""
Exported diagnostic variables.

A process-wide table of named values (counters, build info, ...) that
the recoverer can embed in its HTML report. Every variable renders as
JSON text. The registry is passed to ``Options(exported_vars=...)``
explicitly; ``default_registry`` is only the conventional shared instance.
"""

from __future__ import annotations

import json
import platform
import sys
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple


def _render(value: Any) -> str:
    if isinstance(value, Var):
        return str(value)
    return json.dumps(value, default=str)


class Var:
    """Base class for exported variables."""

    def __str__(self) -> str:  # pragma: no cover - abstract
        raise NotImplementedError


class Int(Var):
    """Thread-safe integer counter."""

    def __init__(self, value: int = 0):
        self._lock = threading.Lock()
        self._value = value

    def add(self, delta: int = 1) -> None:
        with self._lock:
            self._value += delta

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value

    def value(self) -> int:
        with self._lock:
            return self._value

    def __str__(self) -> str:
        return json.dumps(self.value())


class Float(Var):
    """Thread-safe float gauge."""

    def __init__(self, value: float = 0.0):
        self._lock = threading.Lock()
        self._value = float(value)

    def add(self, delta: float) -> None:
        with self._lock:
            self._value += delta

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def value(self) -> float:
        with self._lock:
            return self._value

    def __str__(self) -> str:
        return json.dumps(self.value())


class String(Var):
    """Thread-safe string value."""

    def __init__(self, value: str = ""):
        self._lock = threading.Lock()
        self._value = value

    def set(self, value: str) -> None:
        with self._lock:
            self._value = value

    def value(self) -> str:
        with self._lock:
            return self._value

    def __str__(self) -> str:
        return json.dumps(self.value())


class Func(Var):
    """Value computed by calling ``fn`` every time it is rendered."""

    def __init__(self, fn: Callable[[], Any]):
        self._fn = fn

    def value(self) -> Any:
        return self._fn()

    def __str__(self) -> str:
        return json.dumps(self.value(), default=str)


class Map(Var):
    """Thread-safe string-keyed map of values; renders with sorted keys."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._items[key] = value

    def add(self, key: str, delta: int = 1) -> None:
        """Increment an integer entry, creating it at zero if missing."""
        with self._lock:
            current = self._items.get(key)
            if current is None:
                current = self._items[key] = Int()
            elif not isinstance(current, Int):
                self._items[key] = current + delta
                return
        current.add(delta)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._items.get(key, default)

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def __str__(self) -> str:
        with self._lock:
            items = sorted(self._items.items())
        body = ", ".join(f"{json.dumps(k)}: {_render(v)}" for k, v in items)
        return "{" + body + "}"


class Registry:
    """
    Named exported variables.

    Publishing the same name twice is a programming error and raises
    ValueError. ``snapshot()`` renders every variable under the registry
    lock, so it never observes a half-finished ``publish``.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._vars: Dict[str, Any] = {}

    def publish(self, name: str, var: Any) -> Any:
        with self._lock:
            if name in self._vars:
                raise ValueError(f"Reuse of exported var name: {name}")
            self._vars[name] = var
        return var

    def get(self, name: str) -> Optional[Any]:
        with self._lock:
            return self._vars.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._vars)

    def snapshot(self) -> List[Tuple[str, str]]:
        """Render every variable, sorted by name."""
        with self._lock:
            return [(name, _render(self._vars[name])) for name in sorted(self._vars)]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._vars

    def __len__(self) -> int:
        with self._lock:
            return len(self._vars)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


default_registry = Registry()
default_registry.publish("cmdline", Func(lambda: list(sys.argv)))
default_registry.publish("python", String(platform.python_version()))


def publish(name: str, var: Any) -> Any:
    """Publish ``var`` on the default registry."""
    return default_registry.publish(name, var)


def get(name: str) -> Optional[Any]:
    """Look ``name`` up on the default registry."""
    return default_registry.get(name)
