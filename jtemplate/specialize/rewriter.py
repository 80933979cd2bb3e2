"""Token-range rewriting.

A rewrite replaces the tokens ``[start, end)`` with ``text``; an empty text
deletes them. Everything outside the rewritten ranges is copied verbatim, so
rendering with no ops reproduces the source exactly.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from jtemplate.internals.exceptions import RewriteOverlapError


@dataclass(frozen=True, order=True)
class RewriteOp:
    start: int
    end: int
    text: str

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}) -> {self.text!r}"


def validate_ops(ops: Sequence[RewriteOp], start: int, end: int) -> None:
    """Ops must be sorted, pairwise disjoint and inside ``[start, end)``."""
    prev: Optional[RewriteOp] = None
    for op in ops:
        if op.start < start or op.end > end or op.start > op.end:
            raise RewriteOverlapError("TE4002", op=str(op), start=start, end=end)
        if prev is not None and op.start < prev.end:
            raise RewriteOverlapError("TE4001", first=str(prev), second=str(op))
        if prev is not None and op.start == prev.end == op.end == prev.start:
            # two insertions at one position have no defined order
            raise RewriteOverlapError("TE4001", first=str(prev), second=str(op))
        prev = op


def apply_rewrites(tokens: Sequence[str], ops: Iterable[RewriteOp],
                   start: int = 0, end: Optional[int] = None) -> str:
    """Render ``tokens[start:end]`` with `ops` applied, in one pass."""
    if end is None:
        end = len(tokens)
    ops = list(ops)
    validate_ops(ops, start, end)

    out: List[str] = []
    pos = start
    for op in ops:
        out.extend(tokens[pos:op.start])
        out.append(op.text)
        pos = op.end
    out.extend(tokens[pos:end])
    return "".join(out)
