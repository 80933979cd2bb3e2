"""Substitution engine: computes the rewrites of one specialization.

The engine walks the syntax tree once per binding and appends RewriteOps to
a list passed down the walk; it never mutates the tree or the tokens, so one
parsed template can be specialized concurrently for several bindings.

Placeholder segments inside identifiers map to slot values by position.
The positional order comes from the nearest enclosing type or generic-method
parameter list that declares placeholders:

    class KTypeVTypeMap<VType, KType>    (KType=int, VType=long)
        order  = [VType, KType]
        values = [long, int]          KTypeVTypeMap -> LongIntMap

An identifier followed by explicit type arguments takes its values from the
arguments instead: ``KTypeVTypeFoo<VType, KType>`` reads ``[long, int]``.
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from jtemplate.internals import errors as er
from jtemplate.internals.exceptions import UnsupportedConstructError
from jtemplate.internals.report import Reporter, span_between
from jtemplate.specialize.javadoc import doc_rewrite
from jtemplate.specialize.naming import (
    count_segments, is_placeholder, substitute_segments,
)
from jtemplate.specialize.options import PLACEHOLDERS, TemplateOptions, Type
from jtemplate.specialize.rewriter import RewriteOp, apply_rewrites
from jtemplate.syntax.lexer import TokenSeq, is_trivia
from jtemplate.syntax.nodes import (
    CompilationUnit, DocComment, Import, MethodDecl, Node, ObjectCreation,
    Segment, TypeArgs, TypeDecl, TypeParam, TypeParams, TypeRef, TypeWitness,
    Wildcard,
)
from jtemplate.syntax.parser import MODIFIERS
from jtemplate.syntax.visitors import NodeVisitor

Values = List[Type]


@dataclass(frozen=True)
class Scope:
    """Positional order of the placeholders visible at a point of the tree."""
    order: Tuple[str, ...]

    @classmethod
    def default(cls, options: TemplateOptions) -> "Scope":
        return cls(PLACEHOLDERS if options.has_vtype else PLACEHOLDERS[:1])

    def nested(self, declared: Sequence[str]) -> "Scope":
        if not declared:
            return self
        rest = tuple(p for p in PLACEHOLDERS if p in self.order and p not in declared)
        return Scope(tuple(declared) + rest)

    def values(self, options: TemplateOptions) -> Values:
        return [options.value_of(p) for p in self.order]


class SubstitutionEngine(NodeVisitor[Optional[Values]]):
    """Rewrite rules per node kind.

    Each ``visit_*`` method takes the current scope and the op list to append
    to. Type references return the values their placeholder segments resolved
    to, which an enclosing template reference uses for its own name.
    """

    def __init__(self, tokens: TokenSeq, options: TemplateOptions,
                 reporter: Optional[Reporter] = None) -> None:
        self.tokens = tokens
        self.options = options
        self.reporter = reporter
        self._decl_scopes: List[Tuple[int, int, Scope]] = []

    def run(self, tree: CompilationUnit) -> List[RewriteOp]:
        ops: List[RewriteOp] = []
        self._decl_scopes = []
        default = Scope.default(self.options)
        self.visit(tree, default, ops)
        ops.sort()

        starts = [op.start for op in ops]
        for doc in tree.doc_comments:
            i = bisect_right(starts, doc.start) - 1
            if i >= 0 and ops[i].end >= doc.end:
                continue
            self.visit(doc, self._doc_scope(doc, default), ops)
        ops.sort()
        return ops

    def generic_visit(self, node: Node, *args):
        raise UnsupportedConstructError("TE2003", self._span(node), kind=node.kind.value)

    # ------------------------
    # Helpers
    # ------------------------

    def _doc_scope(self, doc: DocComment, default: Scope) -> Scope:
        """Scope of the declaration `doc` documents, else of the innermost
        declaration around it."""
        target = self._skip_to_declaration(doc.end)
        enclosing = default
        for start, end, scope in self._decl_scopes:
            if start == target:
                return scope
            if start <= doc.start < end:
                enclosing = scope
        return enclosing

    def _skip_to_declaration(self, i: int) -> int:
        """Index of the first token from `i` on that is not trivia, a modifier
        or an annotation."""
        tokens = self.tokens

        def next_code(j: int) -> int:
            while j < len(tokens) and is_trivia(tokens[j]):
                j += 1
            return j

        def at(j: int, value: str) -> bool:
            return j < len(tokens) and tokens[j] == value

        i = next_code(i)
        while i < len(tokens):
            if tokens[i].type == "IDENT" and tokens[i].value in MODIFIERS:
                i = next_code(i + 1)
                continue
            if not at(i, "@"):
                return i
            j = next_code(i + 1)
            if j >= len(tokens) or tokens[j].type != "IDENT" or at(j, "interface"):
                return i
            j = next_code(j + 1)
            while at(j, ".") and next_code(j + 1) < len(tokens):
                j = next_code(next_code(j + 1) + 1)
            if at(j, "("):
                depth = 0
                while j < len(tokens):
                    depth += at(j, "(") - at(j, ")")
                    j += 1
                    if depth == 0:
                        break
                j = next_code(j)
            i = j
        return i

    def _span(self, node: Node):
        if node.start >= node.end or node.end > len(self.tokens):
            return None
        return span_between(self.tokens[node.start], self.tokens[node.end - 1])

    def _render(self, node: Node, ops: List[RewriteOp]) -> str:
        return apply_rewrites(self.tokens, sorted(ops), node.start, node.end)

    def _bare(self, ref: TypeRef) -> Optional[str]:
        """Placeholder name when `ref` is a bare `KType` / `KType[]`."""
        if len(ref.segments) != 1:
            return None
        seg = ref.segments[0]
        name = self.tokens[seg.name]
        if not is_placeholder(name):
            return None
        if seg.args is not None:
            raise UnsupportedConstructError("TE2002", self._span(ref), name=name)
        return name

    def _bound_value(self, arg) -> Optional[Type]:
        """Slot value of `KType`, `KType[]`, `? extends KType` or `? super KType`."""
        ref = arg.bound if isinstance(arg, Wildcard) else arg
        if ref is None:
            return None
        name = self._bare(ref)
        return self.options.value_of(name) if name is not None else None

    def _declared(self, params: Optional[TypeParams]) -> List[str]:
        if params is None:
            return []
        names = [self.tokens[p.name] for p in params.params]
        return [n for n in names if is_placeholder(n)]

    def _rename(self, name: int, values: Sequence[Type], scope: Scope, ops: List[RewriteOp]) -> None:
        text = self.tokens[name]
        n = count_segments(text)
        if n == 0:
            return
        if n > len(values):
            tok = self.tokens[name]
            raise UnsupportedConstructError("TE2001", span_between(tok, tok),
                                            name=text, count=n, slots=len(scope.order))
        new = substitute_segments(text, values[:n])
        if new != text:
            ops.append(RewriteOp(name, name + 1, new))

    def _erase_list(self, node: Node, kept: List[str], ops: List[RewriteOp]) -> None:
        if kept:
            ops.append(RewriteOp(node.start, node.end, "<" + ", ".join(kept) + ">"))
            return
        end = node.end
        if (node.start > 0 and self.tokens[node.start - 1].type == "WS"
                and end < len(self.tokens) and self.tokens[end].type == "WS"):
            end += 1
        ops.append(RewriteOp(node.start, end, ""))

    # ------------------------
    # Declarations
    # ------------------------

    def visit_compilation_unit(self, node: CompilationUnit, scope: Scope, ops: List[RewriteOp]) -> None:
        for member in node.members:
            self.visit(member, scope, ops)

    def visit_import(self, node: Import, scope: Scope, ops: List[RewriteOp]) -> None:
        self.visit(node.ref, scope, ops)

    def visit_type_decl(self, node: TypeDecl, scope: Scope, ops: List[RewriteOp]) -> None:
        inner = scope.nested(self._declared(node.type_params))
        self._decl_scopes.append((node.start, node.end, inner))
        self._rename(node.name, inner.values(self.options), inner, ops)
        if node.type_params is not None:
            self.visit(node.type_params, inner, ops)
        for ref in node.supertypes:
            self.visit(ref, inner, ops)
        for member in node.members:
            self.visit(member, inner, ops)

    def visit_method_decl(self, node: MethodDecl, scope: Scope, ops: List[RewriteOp]) -> None:
        inner = scope.nested(self._declared(node.type_params))
        self._decl_scopes.append((node.start, node.end, inner))
        self.visit(node.type_params, inner, ops)
        for member in node.members:
            self.visit(member, inner, ops)

    def visit_type_params(self, node: TypeParams, scope: Scope, ops: List[RewriteOp]) -> None:
        kept: List[str] = []
        local: List[RewriteOp] = []
        dropped = False
        for param in node.params:
            name = self.tokens[param.name]
            if is_placeholder(name) and self.options.value_of(name).is_primitive:
                dropped = True
                continue
            param_ops: List[RewriteOp] = []
            self.visit(param, scope, param_ops)
            kept.append(self._render(param, param_ops))
            local += param_ops

        if dropped:
            self._erase_list(node, kept, ops)
        else:
            ops += local

    def visit_type_param(self, node: TypeParam, scope: Scope, ops: List[RewriteOp]) -> None:
        for bound in node.bounds:
            self.visit(bound, scope, ops)

    # ------------------------
    # Type references
    # ------------------------

    def visit_type_ref(self, node: TypeRef, scope: Scope, ops: List[RewriteOp],
                       owner: Optional[str] = None) -> Optional[Values]:
        """Rewrite a type reference.

        Args:
            owner: Name of the non-template generic type whose argument list
                contains `node`, if any.

        Returns:
            Values of the last placeholder-bearing segment, or None when the
            reference carries no placeholder.
        """
        placeholder = self._bare(node)
        if placeholder is not None:
            value = self.options.value_of(placeholder)
            if value.is_primitive:
                name = node.last.name
                if owner is not None and node.dims == 0:
                    er.emit(self.reporter, er.ERR.TW0002, self._span(node),
                            placeholder=placeholder, type=value, name=owner)
                    ops.append(RewriteOp(name, name + 1, "Object"))
                else:
                    ops.append(RewriteOp(name, name + 1, value.type_name))
            return [value]

        result = None
        for seg in node.segments:
            values = self._segment(seg, scope, ops)
            if values is not None:
                result = values
        return result

    def visit_wildcard(self, node: Wildcard, scope: Scope, ops: List[RewriteOp],
                       owner: Optional[str] = None) -> Optional[Values]:
        if node.bound is None:
            return None
        return self.visit(node.bound, scope, ops, owner)

    def visit_type_args(self, node: TypeArgs, scope: Scope, ops: List[RewriteOp],
                        owner: Optional[str] = None) -> None:
        """Arguments of a non-template generic type."""
        for arg in node.args:
            self.visit(arg, scope, ops, owner)

    def _segment(self, seg: Segment, scope: Scope, ops: List[RewriteOp]) -> Optional[Values]:
        text = self.tokens[seg.name]
        n = count_segments(text)
        if n == 0:
            if seg.args is not None:
                self.visit(seg.args, scope, ops, text)
            return None

        if seg.args is None:
            values = scope.values(self.options)
        elif seg.args.is_diamond:
            values = scope.values(self.options)
            if all(v.is_primitive for v in values[:n]):
                ops.append(RewriteOp(seg.args.start, seg.args.end, ""))
        else:
            values = self._template_args(seg, scope, ops)

        self._rename(seg.name, values, scope, ops)
        return list(values[:n])

    def _template_args(self, seg: Segment, scope: Scope, ops: List[RewriteOp]) -> Values:
        """Values of a template reference taken from its explicit arguments.

        Arguments bound to a primitive slot are dropped; the list is rebuilt
        from the remaining arguments when any was dropped.
        """
        scope_values = scope.values(self.options)
        values: List[Optional[Type]] = []
        kept: List[str] = []
        local: List[RewriteOp] = []
        dropped = False
        derived = False

        for arg in seg.args.args:
            arg_ops: List[RewriteOp] = []
            if isinstance(arg, Wildcard) and arg.bound is None:
                derived = True
                pos = len(values)
                value = scope_values[pos] if pos < len(scope_values) else None
                values.append(value)
                drop = value is not None and value.is_primitive
            else:
                value = self._bound_value(arg)
                if value is not None:
                    derived = True
                    values.append(value)
                    drop = value.is_primitive
                else:
                    contributed = self.visit(arg, scope, arg_ops)
                    if contributed is not None:
                        values += contributed
                    derived = derived or contributed is not None or isinstance(arg, Wildcard)
                    drop = False

            if drop:
                dropped = True
            else:
                kept.append(self._render(arg, arg_ops))
                local += arg_ops

        if not derived:
            name = self.tokens[seg.name]
            n = count_segments(name)
            erased = substitute_segments(name, [Type.GENERIC] * n)
            er.emit(self.reporter, er.ERR.TW0001, self._span(seg.args),
                    name=name, erased=erased)
            ops += local
            return [Type.GENERIC] * n

        if dropped:
            self._erase_list(seg.args, kept, ops)
        else:
            ops += local

        values += scope_values[len(values):]
        return [v if v is not None else Type.GENERIC for v in values]

    # ------------------------
    # Expressions
    # ------------------------

    def visit_object_creation(self, node: ObjectCreation, scope: Scope, ops: List[RewriteOp]) -> None:
        if node.ctor_args is not None:
            self._explicit_args(node.ctor_args, scope, ops)
        self.visit(node.type, scope, ops)
        for member in node.members:
            self.visit(member, scope, ops)

    def _explicit_args(self, args: TypeArgs, scope: Scope, ops: List[RewriteOp]) -> Values:
        """Drop primitive-bound arguments of a method or constructor type-argument
        list; returns the values the arguments resolved to."""
        values: Values = []
        kept: List[str] = []
        local: List[RewriteOp] = []
        dropped = False

        for arg in args.args:
            arg_ops: List[RewriteOp] = []
            value = self._bound_value(arg)
            if value is not None:
                values.append(value)
                if value.is_primitive:
                    dropped = True
                    continue
            else:
                contributed = self.visit(arg, scope, arg_ops)
                if contributed is not None:
                    values += contributed
            kept.append(self._render(arg, arg_ops))
            local += arg_ops

        if dropped:
            self._erase_list(args, kept, ops)
        else:
            ops += local
        return values

    def visit_type_witness(self, node: TypeWitness, scope: Scope, ops: List[RewriteOp]) -> None:
        values = self._explicit_args(node.args, scope, ops)
        scope_values = scope.values(self.options)
        values += scope_values[len(values):]
        self._rename(node.method, values, scope, ops)

    def visit_doc_comment(self, node: DocComment, scope: Scope, ops: List[RewriteOp]) -> None:
        op = doc_rewrite(self.tokens, node, self.options, scope.values(self.options))
        if op is not None:
            ops.append(op)
