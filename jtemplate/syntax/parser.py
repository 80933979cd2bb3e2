"""Structural parser for Java template sources.

This is not a Java parser. It walks the significant tokens once and records
only the constructs that specialization has to rewrite: type declarations
and their parameter lists, supertypes, type references (with generic
arguments), object creation, generic methods, explicit type witnesses,
imports and doc comments. Everything else (statements, operators, literals)
is skipped while keeping bracket nesting balanced.

Node ranges are indices into the full token tuple, trivia included, so the
rewriter can reproduce the untouched text byte for byte.
"""
from __future__ import annotations

from typing import List, Optional

from lark import Token

from jtemplate.internals.exceptions import TemplateSyntaxError
from jtemplate.internals.report import span_of
from jtemplate.specialize.naming import has_placeholder
from jtemplate.syntax.lexer import TokenSeq, is_trivia, tokenize
from jtemplate.syntax.nodes import (
    CompilationUnit, DocComment, Import, MethodDecl, Node, ObjectCreation,
    Segment, TypeArgs, TypeDecl, TypeParam, TypeParams, TypeRef, TypeWitness,
    Wildcard,
)

KEYWORDS = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch", "char",
    "class", "const", "continue", "default", "do", "double", "else", "enum",
    "extends", "final", "finally", "float", "for", "goto", "if", "implements",
    "import", "instanceof", "int", "interface", "long", "native", "new",
    "package", "private", "protected", "public", "return", "short", "static",
    "strictfp", "super", "switch", "synchronized", "this", "throw", "throws",
    "transient", "try", "void", "volatile", "while", "true", "false", "null",
})

PRIMITIVES = frozenset({"boolean", "byte", "char", "short", "int", "long", "float", "double", "void"})

MODIFIERS = frozenset({
    "public", "protected", "private", "static", "final", "abstract", "native",
    "synchronized", "transient", "volatile", "strictfp", "default", "sealed",
})

DECL_KEYWORDS = frozenset({"class", "interface", "enum", "record"})

CLOSERS = {"(": ")", "[": "]", "{": "}"}

# Tokens that may follow a generic type written in expression position:
# `List<X> x`, `(List<X>) y`, `instanceof Foo<?>;`, `Foo<X>[]`, `Foo<X>::bar`
TYPE_FOLLOW = frozenset({
    "IDENT", "LSQB", "DOT", "DCOLON", "ELLIPSIS", "RPAR", "SEMI", "COMMA",
    "AMP", "LBRACE", "QMARK",
})

_ANNOTATION = "@annotation"
_MEMBER_START = frozenset({None, "{", "}", ";", _ANNOTATION}) | MODIFIERS


class StructuralParser:
    def __init__(self, tokens: TokenSeq):
        self.tokens = tokens
        self.sig = [i for i, t in enumerate(tokens) if not is_trivia(t)]
        self.p = 0

    # ------------------------
    # Token helpers
    # ------------------------

    def _peek(self, k: int = 0) -> Optional[Token]:
        j = self.p + k
        return self.tokens[self.sig[j]] if j < len(self.sig) else None

    def _at(self, value: str, k: int = 0) -> bool:
        tok = self._peek(k)
        return tok is not None and tok.value == value

    def _is_ident(self, k: int = 0) -> bool:
        tok = self._peek(k)
        return tok is not None and tok.type == "IDENT" and tok.value not in KEYWORDS

    def _index(self) -> int:
        return self.sig[self.p] if self.p < len(self.sig) else len(self.tokens)

    def _end(self) -> int:
        """Index one past the last consumed significant token."""
        return self.sig[self.p - 1] + 1

    def _advance(self) -> int:
        idx = self.sig[self.p]
        self.p += 1
        return idx

    def _error(self, expected: str) -> TemplateSyntaxError:
        tok = self._peek()
        if tok is None:
            last = self.tokens[-1] if self.tokens else None
            return TemplateSyntaxError("TE1003", span_of(last), expected=expected, found="end of input")
        return TemplateSyntaxError("TE1003", span_of(tok), expected=expected, found=repr(tok.value))

    def _expect(self, value: str) -> int:
        if not self._at(value):
            raise self._error(repr(value))
        return self._advance()

    def _expect_ident(self, what: str) -> int:
        if not self._is_ident():
            raise self._error(what)
        return self._advance()

    # ------------------------
    # Entry point
    # ------------------------

    def parse(self) -> CompilationUnit:
        members = self._scan(None)
        docs = tuple(DocComment(i, i + 1) for i, t in enumerate(self.tokens) if t.type == "DOC_COMMENT")
        return CompilationUnit(0, len(self.tokens), tuple(members), docs)

    # ------------------------
    # Scanning (statements, bodies, expressions)
    # ------------------------

    def _scan(self, closer: Optional[str], opener: Optional[int] = None,
              member_end: bool = False) -> List[Node]:
        """Collect nodes until `closer` (consumed) or, with `member_end`, until
        the end of a member: a `;` or a `{...}` body at this level."""
        nodes: List[Node] = []
        prev: Optional[str] = None
        top_level = closer is None and not member_end

        while True:
            tok = self._peek()
            if tok is None:
                if top_level:
                    return nodes
                if opener is not None:
                    open_tok = self.tokens[opener]
                    raise TemplateSyntaxError("TE1004", span_of(open_tok), bracket=open_tok.value)
                raise self._error("end of member")

            t, kind = tok.value, tok.type

            if kind in ("RPAR", "RSQB", "RBRACE"):
                if t == closer:
                    self._advance()
                    return nodes
                raise TemplateSyntaxError("TE1004", span_of(tok), bracket=t)

            if kind in ("LPAR", "LSQB", "LBRACE"):
                idx = self._advance()
                nodes += self._scan(CLOSERS[t], idx)
                if member_end and t == "{":
                    return nodes
                prev = CLOSERS[t]
                continue

            if kind == "SEMI":
                self._advance()
                if member_end:
                    return nodes
                prev = ";"
                continue

            if kind == "AT":
                if self._at("interface", 1):
                    nodes.append(self._type_decl())
                    prev = "}"
                else:
                    nodes += self._annotation()
                    prev = _ANNOTATION
                continue

            if kind == "IDENT":
                if top_level and t == "import":
                    nodes.append(self._import())
                    prev = ";"
                elif top_level and t == "package":
                    self._skip_statement()
                    prev = ";"
                elif t in DECL_KEYWORDS and prev != "." and self._starts_type_decl():
                    nodes.append(self._type_decl())
                    prev = "}"
                elif t == "new":
                    nodes += self._creation()
                    prev = ")"
                elif t in KEYWORDS:
                    self._advance()
                    prev = t
                else:
                    ref = self._chain()
                    if ref is not None:
                        nodes.append(ref)
                    prev = "IDENT"
                continue

            if kind == "DOT" and self._at("<", 1):
                nodes.append(self._witness())
                prev = "IDENT"
                continue

            if kind == "LT" and prev in _MEMBER_START:
                tp = self._type_params(required=False)
                if tp is not None:
                    rest = self._scan(None, member_end=True)
                    nodes.append(MethodDecl(tp.start, self._end(), tp, tuple(rest)))
                    prev = "}"
                    continue

            self._advance()
            prev = t

    def _skip_statement(self) -> None:
        while not self._at(";"):
            if self._peek() is None:
                raise self._error("';'")
            self._advance()
        self._advance()

    def _annotation(self) -> List[Node]:
        self._advance()  # '@'
        self._expect_ident("annotation name")
        while self._at(".") and self._is_ident(1):
            self._advance()
            self._advance()
        if self._at("("):
            idx = self._advance()
            return self._scan(")", idx)
        return []

    # ------------------------
    # Declarations
    # ------------------------

    def _starts_type_decl(self) -> bool:
        if not self._is_ident(1):
            return False
        if self._at("record"):
            return self._at("(", 2) or self._at("<", 2)
        return True

    def _type_decl(self) -> TypeDecl:
        start = self._index()
        if self._at("@"):
            self._advance()
        keyword = self._advance()
        name = self._expect_ident("type name")

        type_params = self._type_params(required=True) if self._at("<") else None

        members: List[Node] = []
        if self._at("("):
            # record header
            idx = self._advance()
            members += self._scan(")", idx)

        supertypes: List[TypeRef] = []
        while self._peek() is not None and self._peek().value in ("extends", "implements", "permits"):
            self._advance()
            while True:
                supertypes.append(self._type(allow_diamond=False))
                if not self._at(","):
                    break
                self._advance()

        body = self._expect("{")
        members += self._scan("}", body)
        return TypeDecl(start, self._end(), keyword, name, type_params, tuple(supertypes), tuple(members))

    def _type_params(self, required: bool) -> Optional[TypeParams]:
        save = self.p

        def fail() -> None:
            if required:
                raise self._error("type parameter")
            self.p = save
            return None

        start = self._advance()  # '<'
        params: List[TypeParam] = []
        while True:
            while self._at("@"):
                self._annotation()
            if not self._is_ident():
                return fail()
            pstart = self._index()
            name = self._advance()
            bounds: List[TypeRef] = []
            if self._at("extends"):
                self._advance()
                while True:
                    bound = self._type(allow_diamond=False, strict=False)
                    if bound is None:
                        return fail()
                    bounds.append(bound)
                    if not self._at("&"):
                        break
                    self._advance()
            params.append(TypeParam(pstart, self._end(), name, tuple(bounds)))
            if self._at(","):
                self._advance()
                continue
            if self._at(">"):
                self._advance()
                break
            return fail()
        return TypeParams(start, self._end(), tuple(params))

    def _import(self) -> Import:
        start = self._advance()  # import
        is_static = False
        if self._at("static"):
            self._advance()
            is_static = True
        first = self._index()
        segments = [Segment(self._expect_ident("imported name"))]
        on_demand = False
        while self._at("."):
            self._advance()
            if self._at("*"):
                self._advance()
                on_demand = True
                break
            segments.append(Segment(self._expect_ident("imported name")))
        ref = TypeRef(first, segments[-1].name + 1, tuple(segments))
        self._expect(";")
        return Import(start, self._end(), ref, is_static, on_demand)

    # ------------------------
    # Types
    # ------------------------

    def _type(self, allow_diamond: bool, strict: bool = True, dims: bool = True) -> Optional[TypeRef]:
        """Type in a position where only a type can appear."""
        while self._at("@") and not self._at("interface", 1):
            self._annotation()
        tok = self._peek()
        if tok is None or tok.type != "IDENT" or (tok.value in KEYWORDS and tok.value not in PRIMITIVES):
            if strict:
                raise self._error("type name")
            return None

        start = self._index()
        segments: List[Segment] = []
        while True:
            name = self._advance()
            args = None
            if self._at("<"):
                args = self._type_args(allow_diamond)
                if args is None:
                    if strict:
                        raise self._error("type arguments")
                    return None
            segments.append(Segment(name, args))
            if self._at(".") and self._is_ident(1):
                self._advance()
                continue
            break

        count = 0
        if dims:
            while self._at("[") and self._at("]", 1):
                self._advance()
                self._advance()
                count += 1
        return TypeRef(start, self._end(), tuple(segments), count)

    def _type_args(self, allow_diamond: bool) -> Optional[TypeArgs]:
        """`<...>` at the current position, or None (position restored)."""
        save = self.p
        start = self._advance()  # '<'
        if self._at(">"):
            if not allow_diamond:
                self.p = save
                return None
            self._advance()
            return TypeArgs(start, self._end(), ())

        args = []
        while True:
            arg = self._type_arg()
            if arg is None:
                self.p = save
                return None
            args.append(arg)
            if self._at(","):
                self._advance()
                continue
            if self._at(">"):
                self._advance()
                break
            self.p = save
            return None
        return TypeArgs(start, self._end(), tuple(args))

    def _type_arg(self):
        tok = self._peek()
        if tok is None:
            return None
        if tok.type == "QMARK":
            start = self._advance()
            nxt = self._peek()
            if nxt is not None and nxt.type == "IDENT" and nxt.value in ("extends", "super"):
                bound_kind = self.tokens[self._advance()].value
                bound = self._type(allow_diamond=False, strict=False)
                if bound is None:
                    return None
                return Wildcard(start, self._end(), bound_kind, bound)
            return Wildcard(start, self._end())
        return self._type(allow_diamond=False, strict=False)

    # ------------------------
    # Expressions
    # ------------------------

    def _chain(self) -> Optional[TypeRef]:
        """Qualified name in expression position, with generic arguments when
        they are type-shaped and followed by something a type can precede."""
        start = self._index()
        segments: List[Segment] = []
        relevant = False
        while True:
            name = self._advance()
            if has_placeholder(self.tokens[name]):
                relevant = True
            args = None
            if self._at("<"):
                save = self.p
                args = self._type_args(allow_diamond=False)
                if args is not None and not self._follows_type():
                    self.p = save
                    args = None
                if args is not None:
                    relevant = True
            segments.append(Segment(name, args))
            if self._at(".") and self._is_ident(1):
                self._advance()
                continue
            break
        if not relevant:
            return None
        return TypeRef(start, self._end(), tuple(segments))

    def _follows_type(self) -> bool:
        tok = self._peek()
        return tok is None or tok.type in TYPE_FOLLOW

    def _creation(self) -> List[Node]:
        start = self._advance()  # new
        ctor_args = None
        if self._at("<"):
            # constructor type arguments: new <T>Foo()
            ctor_args = self._type_args(allow_diamond=False)
            if ctor_args is None:
                raise self._error("type arguments")
        tok = self._peek()
        if tok is None or tok.type != "IDENT":
            # method reference `Foo::new`
            return []
        if tok.value in PRIMITIVES:
            self._advance()
            return []

        ref = self._type(allow_diamond=True, dims=False)
        members: List[Node] = []
        if self._at("("):
            idx = self._advance()
            members += self._scan(")", idx)
            if self._at("{"):
                idx = self._advance()
                members += self._scan("}", idx)
        return [ObjectCreation(start, self._end(), ref, tuple(members), ctor_args)]

    def _witness(self) -> TypeWitness:
        self._advance()  # '.'
        args = self._type_args(allow_diamond=False)
        if args is None:
            raise self._error("type arguments")
        tok = self._peek()
        if tok is None or tok.type != "IDENT":
            raise self._error("method name")
        method = self._advance()
        return TypeWitness(args.start, method + 1, args, method)


def parse_tokens(tokens: TokenSeq) -> CompilationUnit:
    return StructuralParser(tokens).parse()


def parse_source(src: str) -> tuple[TokenSeq, CompilationUnit]:
    """Lex and parse `src`.

    Returns:
        Tuple of (tokens, tree).
    """
    tokens = tokenize(src)
    return tokens, parse_tokens(tokens)
