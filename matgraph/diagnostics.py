"""
Diagnostic utilities for graph construction and execution errors.

This is intentionally lightweight (no color dependencies) but supports:
  - structured diagnostics
  - suggestions/notes/hints
  - rich multi-line formatting (Clang-like)
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Literal


Level = Literal["error", "warning", "info"]


@dataclass
class Diagnostic:
    level: Level
    message: str
    suggestions: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


def format_rich(diag: Diagnostic, *, snippet: str | None = None, caret: str | None = None) -> str:
    lines: List[str] = [f"{diag.level.upper()}: {diag.message}"]
    if snippet:
        lines.append(f"  -> {snippet}")
        if caret:
            lines.append(f"     {caret}")
    for n in diag.notes:
        lines.append(f"Note: {n}")
    for s in diag.suggestions:
        lines.append(f"Hint: {s}")
    return "\n".join(lines)


def closest_match(name: str, candidates: Iterable[str], *, n: int = 1) -> List[str]:
    return list(difflib.get_close_matches(str(name), list(candidates), n=n, cutoff=0.6))


def format_node_snippet(op: str, inputs: Iterable[Any], output: str | None = None) -> str:
    """
    Human-readable `op(a, b) -> out` string; inputs may be nodes or plain names.
    """
    names = [str(getattr(x, "name", x)) for x in inputs]
    head = f"{op}({', '.join(names)})"
    return f"{head} -> {output}" if output else head


def caret_under(snippet: str, needle: str) -> str | None:
    pos = snippet.find(needle)
    if pos < 0:
        return None
    return " " * pos + "^" * max(1, len(needle))


__all__ = [
    "Diagnostic",
    "format_rich",
    "closest_match",
    "format_node_snippet",
    "caret_under",
]
