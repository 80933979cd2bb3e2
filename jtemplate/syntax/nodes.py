# jtemplate/syntax/nodes.py
"""Syntax tree produced by the structural parser.

Nodes never copy source text: ``start``/``end`` are indices into the token
tuple returned by the lexer (``end`` is exclusive), and name fields hold the
index of a single identifier token. Every concrete node class declares its
``kind``; the set of kinds is closed and the substitution engine dispatches
on it.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from typing import ClassVar, Iterator, Optional, Tuple, Union


class NodeKind(str, Enum):
    COMPILATION_UNIT = "compilation_unit"
    IMPORT = "import"
    TYPE_DECL = "type_decl"
    TYPE_PARAMS = "type_params"
    TYPE_PARAM = "type_param"          # bounded type variable: T extends X<...>
    TYPE_REF = "type_ref"
    TYPE_ARGS = "type_args"
    WILDCARD = "wildcard"
    OBJECT_CREATION = "object_creation"
    METHOD_DECL = "method_decl"
    TYPE_WITNESS = "type_witness"
    DOC_COMMENT = "doc_comment"


# === Core node base ===

@dataclass(frozen=True)
class Node:
    start: int
    end: int

    kind: ClassVar[NodeKind]

    def children(self) -> Iterator["Node"]:
        """Direct child nodes, in field order."""
        for f in fields(self):
            val = getattr(self, f.name)
            if isinstance(val, Node):
                yield val
            elif isinstance(val, tuple):
                for item in val:
                    if isinstance(item, Node):
                        yield item
                    elif isinstance(item, Segment) and item.args is not None:
                        yield item.args


# === Type references ===

@dataclass(frozen=True)
class Segment:
    """One identifier of a qualified type name, with its own type arguments."""
    name: int                               # token index of the identifier
    args: Optional["TypeArgs"] = None


@dataclass(frozen=True)
class TypeRef(Node):
    """`a.b.KTypeFoo<KType>[]`, a bare `KType`, or `KTypeFoo.this` style chains."""
    segments: Tuple[Segment, ...]
    dims: int = 0                           # trailing `[]` pairs

    kind: ClassVar[NodeKind] = NodeKind.TYPE_REF

    @property
    def last(self) -> Segment:
        return self.segments[-1]


@dataclass(frozen=True)
class Wildcard(Node):
    """`?`, `? extends X`, `? super X`."""
    bound_kind: Optional[str] = None        # "extends" | "super"
    bound: Optional[TypeRef] = None

    kind: ClassVar[NodeKind] = NodeKind.WILDCARD


TypeArg = Union[TypeRef, Wildcard]


@dataclass(frozen=True)
class TypeArgs(Node):
    """`<A, B>` attached to a type reference; empty for the diamond `<>`."""
    args: Tuple[TypeArg, ...] = ()

    kind: ClassVar[NodeKind] = NodeKind.TYPE_ARGS

    @property
    def is_diamond(self) -> bool:
        return not self.args


# === Declarations ===

@dataclass(frozen=True)
class TypeParam(Node):
    name: int                               # token index of the type variable
    bounds: Tuple[TypeRef, ...] = ()        # `extends A & B`

    kind: ClassVar[NodeKind] = NodeKind.TYPE_PARAM


@dataclass(frozen=True)
class TypeParams(Node):
    params: Tuple[TypeParam, ...]

    kind: ClassVar[NodeKind] = NodeKind.TYPE_PARAMS


@dataclass(frozen=True)
class Import(Node):
    ref: TypeRef
    is_static: bool = False
    on_demand: bool = False                 # `import a.b.*;`

    kind: ClassVar[NodeKind] = NodeKind.IMPORT


@dataclass(frozen=True)
class TypeDecl(Node):
    """class / interface / enum / record / @interface declaration."""
    keyword: int
    name: int
    type_params: Optional[TypeParams]
    supertypes: Tuple[TypeRef, ...]         # extends / implements / permits targets
    members: Tuple[Node, ...]               # everything recognized in header parens and body

    kind: ClassVar[NodeKind] = NodeKind.TYPE_DECL


@dataclass(frozen=True)
class MethodDecl(Node):
    """A generic method or constructor, from its type parameters to its body."""
    type_params: TypeParams
    members: Tuple[Node, ...]

    kind: ClassVar[NodeKind] = NodeKind.METHOD_DECL


# === Expressions ===

@dataclass(frozen=True)
class ObjectCreation(Node):
    """`new X<...>(...)`, `new X<>()`, `new X[n]`, with an optional anonymous body."""
    type: TypeRef
    members: Tuple[Node, ...] = ()
    ctor_args: Optional[TypeArgs] = None      # `new <T>X()`

    kind: ClassVar[NodeKind] = NodeKind.OBJECT_CREATION


@dataclass(frozen=True)
class TypeWitness(Node):
    """`Owner.<KType>method(...)`: the range covers the arguments and the method name."""
    args: TypeArgs
    method: int

    kind: ClassVar[NodeKind] = NodeKind.TYPE_WITNESS


@dataclass(frozen=True)
class DocComment(Node):
    kind: ClassVar[NodeKind] = NodeKind.DOC_COMMENT


@dataclass(frozen=True)
class CompilationUnit(Node):
    members: Tuple[Node, ...]
    doc_comments: Tuple[DocComment, ...] = ()

    kind: ClassVar[NodeKind] = NodeKind.COMPILATION_UNIT


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal."""
    yield node
    for child in node.children():
        yield from walk(child)
