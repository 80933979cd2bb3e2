"""Parse once, specialize many times.

    sp = SignatureProcessor(source, "KTypeArrayDeque.java")
    for kt in (Type.INT, Type.LONG, Type.GENERIC):
        out = sp.process(sp.bind(kt))

The token tuple and the tree are immutable after construction; ``process``
only allocates a local op list, so several threads may share one processor.
"""
from __future__ import annotations
from typing import List, Optional, Union

from jtemplate.internals.exceptions import TemplateBindingError
from jtemplate.internals.report import Reporter
from jtemplate.specialize.engine import Scope, SubstitutionEngine
from jtemplate.specialize.naming import count_segments, is_placeholder, substitute_segments
from jtemplate.specialize.options import TemplateOptions, Type
from jtemplate.specialize.rewriter import RewriteOp, apply_rewrites
from jtemplate.syntax.lexer import TokenSeq
from jtemplate.syntax.nodes import CompilationUnit, TypeDecl
from jtemplate.syntax.parser import parse_source

TypeLike = Union[Type, str]


class SignatureProcessor:
    def __init__(self, source: str, filename: str = "<template>") -> None:
        self.source = source
        self.filename = filename
        self._tokens, self._tree = parse_source(source)
        uses_vtype = any("VType" in tok for tok in self._tokens
                         if tok.type in ("IDENT", "DOC_COMMENT"))
        self._slot_count = 2 if uses_vtype else 1

    @property
    def tokens(self) -> TokenSeq:
        return self._tokens

    @property
    def tree(self) -> CompilationUnit:
        return self._tree

    @property
    def slot_count(self) -> int:
        """1 for KType-only templates, 2 when VType appears."""
        return self._slot_count

    def bind(self, ktype: TypeLike, vtype: Optional[TypeLike] = None) -> TemplateOptions:
        return TemplateOptions.for_template(self._slot_count, ktype, vtype)

    def _check(self, options: TemplateOptions) -> None:
        if self._slot_count < 2 and options.has_vtype:
            raise TemplateBindingError("TE3002", vtype=options.vtype)
        if self._slot_count >= 2 and not options.has_vtype:
            raise TemplateBindingError("TE3001", placeholder="VType")

    def rewrite_ops(self, options: TemplateOptions, reporter: Optional[Reporter] = None) -> List[RewriteOp]:
        self._check(options)
        return SubstitutionEngine(self._tokens, options, reporter).run(self._tree)

    def process(self, options: TemplateOptions, reporter: Optional[Reporter] = None) -> str:
        """Specialized source text for `options`.

        Raises:
            TemplateBindingError: `options` does not fit the template's slots.
            UnsupportedConstructError: a construct has no rewrite rule.
        """
        return apply_rewrites(self._tokens, self.rewrite_ops(options, reporter))

    def primary_type(self) -> Optional[TypeDecl]:
        """First top-level type declaration, preferring one whose name carries a placeholder."""
        decls = [m for m in self._tree.members if isinstance(m, TypeDecl)]
        for decl in decls:
            if count_segments(self._tokens[decl.name]):
                return decl
        return decls[0] if decls else None

    def specialized_type_name(self, options: TemplateOptions, name: Optional[str] = None) -> Optional[str]:
        """Specialized name of the primary type, or of `name` in the default scope."""
        self._check(options)
        scope = Scope.default(options)
        decl = self.primary_type()
        if decl is not None and (name is None or name == self._tokens[decl.name]):
            name = self._tokens[decl.name]
            declared = [self._tokens[p.name] for p in decl.type_params.params] if decl.type_params else []
            scope = scope.nested([d for d in declared if is_placeholder(d)])
        if name is None:
            return None
        values = scope.values(options)
        if count_segments(name) > len(values):
            return name
        return substitute_segments(name, values)


def specialize(source: str, options: TemplateOptions, reporter: Optional[Reporter] = None) -> str:
    """One-shot helper: parse `source` and specialize it for `options`."""
    return SignatureProcessor(source).process(options, reporter)
