from __future__ import annotations
import os
import sys
import threading
from dataclasses import dataclass
from typing import List, Optional, Any

from lark import Token

class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"
    GRAY  = "\x1b[90m"

@dataclass(frozen=True)
class Span:
    line: int
    col: int
    end_line: int
    end_col: int

@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    span: Optional[Span] = None
    filename: Optional[str] = None
    context: Optional[str] = None     # binding the diagnostic was produced under

def span_of(t: Any) -> Optional[Span]:
    if not isinstance(t, Token) or t.line is None or t.column is None:
        return None
    return Span(t.line, t.column, t.end_line or t.line, t.end_column or t.column)


def span_between(first: Token, last: Token) -> Optional[Span]:
    """Span from the start of `first` to the end of `last`."""
    a, b = span_of(first), span_of(last)
    if a is None or b is None:
        return a or b
    return Span(a.line, a.col, b.end_line, b.end_col)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" + ("" if n == 1 else "s")


class Reporter:
    """Collects diagnostics for one template and renders them.

    `context` names the binding being specialized (``KType=int``) and is
    shown next to each location, so batch output stays readable when one
    template yields many files. Appends go through a lock; one reporter may
    be shared by several worker threads.
    """

    def __init__(self, source: Optional[str] = None, filename: str = "<template>",
                 context: Optional[str] = None) -> None:
        self.source = source
        self.filename = filename
        self.context = context
        self.items: List[Diagnostic] = []
        self._lock = threading.Lock()

    def _add(self, kind: str, code: str, msg: str, span: Optional[Span]) -> None:
        d = Diagnostic(kind, code, msg, span, filename=self.filename, context=self.context)
        with self._lock:
            self.items.append(d)

    def error(self, code: str, msg: str, span: Optional[Span]):
        self._add("error", code, msg, span)

    def warn(self, code: str, msg: str, span: Optional[Span]):
        self._add("warning", code, msg, span)

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    @property
    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.items)

    @property
    def exit_code(self) -> int:
        """0 = clean, 1 = warnings only, 2 = errors."""
        if self.has_errors:
            return 2
        return 1 if self.has_warnings else 0

    def codes(self) -> List[str]:
        return [d.code for d in self.items]

    def summary(self) -> str:
        """`2 errors, 1 warning`; empty when there is nothing to report."""
        errors = sum(1 for d in self.items if d.kind == "error")
        warnings = len(self.items) - errors
        parts = []
        if errors:
            parts.append(_plural(errors, "error"))
        if warnings:
            parts.append(_plural(warnings, "warning"))
        return ", ".join(parts)

    # ------------------------
    # Rendering
    # ------------------------

    def _header(self, d: Diagnostic, use_color: bool) -> str:
        loc = d.filename or self.filename
        if d.span is not None:
            loc = f"{loc}:{d.span.line}:{d.span.col}"
        if d.context:
            loc = f"{loc} ({d.context})"
        message = d.message if d.message.endswith('.') else f"{d.message}."
        if not use_color:
            return f"{loc}: {d.kind} [{d.code}]: {message}"
        tint = C.RED if d.kind == "error" else C.YELLOW
        return f"{C.CYAN}{loc}{C.RESET}: {C.BOLD}{tint}{d.kind}{C.RESET} [{C.DIM}{d.code}{C.RESET}]: {message}"

    def _snippet(self, d: Diagnostic, lines: List[str], use_color: bool, use_unicode: bool) -> List[str]:
        """Source line of the span start with a marker under the span."""
        idx = d.span.line - 1
        text = lines[idx] if 0 <= idx < len(lines) else ""
        start = max(1, d.span.col)
        # multi-line spans are marked on their first line only
        width = max(1, d.span.end_col - start) if d.span.end_line == d.span.line else 1
        pad = " " * (start - 1)

        if not use_unicode:
            return [f"  | {text}", f"  ` {pad}{'^' * width}"]

        marker = pad + "┯" + "━" * (width - 1)
        guide = "─" * start
        if use_color:
            tint = C.RED if d.kind == "error" else C.YELLOW
            return [f"{C.GRAY}  │{C.RESET}  {text}",
                    f"{C.GRAY}  │{C.RESET}  {tint}{marker}{C.RESET}",
                    f"{C.GRAY}  ╰{guide}{C.RESET}{tint}╯{C.RESET}"]
        return [f"  │  {text}", f"  │  {marker}", f"  ╰{guide}╯"]

    def format(self, use_color: bool = True, use_unicode: bool = True) -> str:
        """Render all diagnostics.

        use_color   → ANSI colorize location/kind/guide/markers
        use_unicode → box-drawing guide and marker instead of `|` and `^`
        """
        out: List[str] = []
        lines = self.source.splitlines() if self.source else None
        for d in self.items:
            head = self._header(d, use_color)
            if d.span is None or lines is None:
                out.append(head)
                continue
            if use_unicode:
                lead = f"{C.GRAY}  ╭──┤ {C.RESET}" if use_color else "  ╭──┤ "
                out.append(lead + head)
            else:
                out.append(head)
            out.extend(self._snippet(d, lines, use_color, use_unicode))
        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None, use_unicode: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        Unicode guides are auto-enabled for TTY unless NO_UNICODE or TERM=dumb.
        """
        stream = stream or sys.stderr
        is_tty = getattr(stream, "isatty", lambda: False)()
        dumb = os.getenv("TERM") == "dumb"

        if use_color is None:
            use_color = bool(is_tty and os.getenv("NO_COLOR") is None and not dumb)

        if use_unicode is None:
            use_unicode = bool(is_tty and os.getenv("NO_UNICODE") is None and not dumb)

        text = self.format(use_color=use_color, use_unicode=use_unicode)
        if text:
            print(text, file=stream)
