"""
Fault reports - everything known about one trapped fault.
"""

from __future__ import annotations

import os
import traceback
from dataclasses import dataclass, replace
from typing import Iterable, List, Tuple

from .faults import FaultValue

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def _is_internal(filename: str) -> bool:
    return os.path.dirname(os.path.abspath(filename)) == _PACKAGE_DIR


def _source_location(exc: BaseException, caller_depth: int) -> Tuple[str, int]:
    """Resolve file/line ``caller_depth`` frames above where ``exc`` was raised.

    Frames run from the trap (outermost) to the raise site (innermost).
    Frames inside this package (the middleware's own frame, ``panic()``)
    are never reported unless nothing else is left.
    """
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return "<unknown>", 0

    end = len(frames)
    while end > 1 and _is_internal(frames[end - 1].filename):
        end -= 1
    start = 0
    while start < end - 1 and _is_internal(frames[start].filename):
        start += 1

    index = max(start, end - 1 - caller_depth)
    frame = frames[index]
    return frame.filename, frame.lineno or 0


@dataclass(frozen=True)
class FaultReport:
    """
    Snapshot of a single fault, built once per faulting request.

    Attributes:
        fault: What was raised
        stack: Formatted traceback text
        file: Source file of the reported frame
        line: Line number within ``file``
        exported_vars: (name, rendered value) pairs, HTML report only
    """
    fault: FaultValue
    stack: str
    file: str
    line: int
    exported_vars: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def capture(cls, exc: BaseException, caller_depth: int = 0) -> "FaultReport":
        """Build a report for ``exc``; must be called while handling it."""
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        file, line = _source_location(exc, caller_depth)
        return cls(
            fault=FaultValue.from_exception(exc),
            stack=stack,
            file=file,
            line=line,
        )

    def with_exported_vars(self, snapshot: Iterable[Tuple[str, str]]) -> "FaultReport":
        pairs: List[Tuple[str, str]] = [(str(k), str(v)) for k, v in snapshot]
        return replace(self, exported_vars=tuple(pairs))
