from __future__ import annotations
from dataclasses import is_dataclass, fields
from typing import Any

from jtemplate.syntax.lexer import TokenSeq
from jtemplate.syntax.nodes import Node

_TOKEN_FIELDS = {"name", "keyword", "method"}


def _text(tokens: TokenSeq, node: Node) -> str:
    text = " ".join("".join(tokens[node.start:node.end]).split())
    return text if len(text) <= 60 else text[:57] + "..."


def _pp(node: Any, tokens: TokenSeq, indent: int) -> str:
    ind = "  " * indent
    if isinstance(node, tuple):
        return "\n".join(_pp(n, tokens, indent) for n in node)
    if not is_dataclass(node):
        return ind + repr(node)

    if isinstance(node, Node):
        lines = [f"{ind}{node.kind.value} [{node.start}:{node.end}] {_text(tokens, node)!r}"]
    else:
        lines = [f"{ind}{node.__class__.__name__}"]
    for f in fields(node):
        if f.name in ("start", "end"):
            continue
        val = getattr(node, f.name)
        if val is None or val == ():
            continue
        if f.name in _TOKEN_FIELDS and isinstance(val, int):
            lines.append(f"{ind}  {f.name}: {tokens[val]!s}")
        elif is_dataclass(val) or isinstance(val, tuple):
            lines.append(f"{ind}  {f.name}:")
            lines.append(_pp(val, tokens, indent + 2))
        else:
            lines.append(f"{ind}  {f.name}: {val!r}")
    return "\n".join(lines)


def dump_tree(node: Node, tokens: TokenSeq) -> str:
    return _pp(node, tokens, 0)

