"""Lark lexer setup for template sources.

The structural parser needs every character of the input back, so the lexer
keeps whitespace and comments as ordinary tokens. Lark drops %ignore'd
terminals while parsing; ``Lark.lex(..., dont_ignore=True)`` hands them back.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Tuple

from lark import Lark, Token, UnexpectedCharacters

from jtemplate.internals.exceptions import TemplateSyntaxError
from jtemplate.internals.report import Span, span_of

GRAMMAR_PATH = Path(__file__).parent.parent / "java_tokens.lark"

TRIVIA = frozenset({"WS", "LINE_COMMENT", "BLOCK_COMMENT", "DOC_COMMENT"})

TokenSeq = Tuple[Token, ...]


@lru_cache(maxsize=1)
def _lark() -> Lark:
    return Lark.open(
        str(GRAMMAR_PATH),
        parser="lalr",
        lexer="basic",
        propagate_positions=False,
        maybe_placeholders=False,
    )


def is_trivia(tok: Token) -> bool:
    return tok.type in TRIVIA


def tokenize(src: str) -> TokenSeq:
    """Split `src` into tokens, trivia included.

    Raises:
        TemplateSyntaxError: on a character no terminal matches, or an
            unterminated block comment.
    """
    try:
        tokens = tuple(_lark().lex(src, dont_ignore=True))
    except UnexpectedCharacters as e:
        span = Span(e.line, e.column, e.line, e.column + 1)
        raise TemplateSyntaxError("TE1001", span, char=e.char) from None

    for prev, tok in zip(tokens, tokens[1:]):
        # '/*' only survives as two operators when the comment never closes
        if prev.type == "OP" and prev == "/" and tok.type == "OP" and tok == "*" \
                and prev.end_pos == tok.start_pos:
            raise TemplateSyntaxError("TE1002", span_of(prev))

    assert "".join(tokens) == src, "lexer dropped input characters"
    return tokens


def dump_tokens(tokens: TokenSeq) -> str:
    """One line per token: index, kind, position and text."""
    lines = []
    for i, tok in enumerate(tokens):
        lines.append(f"{i:5d}  {tok.type:<13} {tok.line}:{tok.column:<6} {tok.value!r}")
    return "\n".join(lines)
