"""Tests for the template lexer."""

import pytest

from jtemplate.internals.exceptions import TemplateSyntaxError
from jtemplate.syntax.lexer import dump_tokens, is_trivia, tokenize


def kinds(src: str) -> list[str]:
    return [t.type for t in tokenize(src) if not is_trivia(t)]


class TestTokenize:
    def test_reproduces_input_exactly(self):
        src = "class  KTypeFoo<KType>\t{\r\n  /** doc */ int x = 0x1F; // tail\n}"
        assert "".join(tokenize(src)) == src

    def test_trivia_are_tokens(self):
        types = [t.type for t in tokenize("a /* b */ /** c */ // d\n")]
        assert types == ["IDENT", "WS", "BLOCK_COMMENT", "WS", "DOC_COMMENT", "WS", "LINE_COMMENT", "WS"]

    def test_empty_block_comment_is_not_doc(self):
        assert [t.type for t in tokenize("/**/")] == ["BLOCK_COMMENT"]

    def test_nested_generic_closers_are_single_tokens(self):
        assert kinds("A<B<C>>") == ["IDENT", "LT", "IDENT", "LT", "IDENT", "GT", "GT"]

    def test_punctuation(self):
        assert kinds("a::b ... ? @ & [ ] ;") == [
            "IDENT", "DCOLON", "IDENT", "ELLIPSIS", "QMARK", "AT", "AMP", "LSQB", "RSQB", "SEMI"]

    def test_literals(self):
        assert kinds('"a\\"b" \'c\' 1.5f 0xFFL """\ntext "block"\n"""') == [
            "STRING", "CHAR_LIT", "NUMBER", "NUMBER", "TEXT_BLOCK"]

    def test_placeholder_inside_string_is_not_identifier(self):
        toks = [t for t in tokenize('"KTypeFoo"') if not is_trivia(t)]
        assert len(toks) == 1 and toks[0].type == "STRING"

    def test_positions(self):
        toks = tokenize("a\n  bb")
        bb = toks[-1]
        assert (bb.line, bb.column) == (2, 3)


class TestErrors:
    def test_unexpected_character(self):
        with pytest.raises(TemplateSyntaxError) as exc:
            tokenize("class Foo { # }")
        assert exc.value.code == "TE1001"
        assert exc.value.span.col == 13

    def test_unterminated_string(self):
        with pytest.raises(TemplateSyntaxError) as exc:
            tokenize('String s = "abc;\n')
        assert exc.value.code == "TE1001"

    def test_unterminated_comment(self):
        with pytest.raises(TemplateSyntaxError) as exc:
            tokenize("class Foo {} /* never closed")
        assert exc.value.code == "TE1002"


def test_dump_tokens_lists_every_token():
    out = dump_tokens(tokenize("a b"))
    assert len(out.splitlines()) == 3
    assert "IDENT" in out and "WS" in out
