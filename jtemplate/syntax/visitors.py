"""
Visitor base for the template syntax tree.

Dispatch goes through the node's ``kind`` tag rather than its class name, so a
visitor's coverage of the closed set of node kinds is easy to check: every
handled kind has a ``visit_<kind>`` method, everything else reaches
``generic_visit``.

Example:
    class NameCollector(NodeVisitor[None]):
        def visit_type_decl(self, node: TypeDecl, *args) -> None:
            names.append(node.name)
"""
from __future__ import annotations
from abc import ABC
from typing import TypeVar, Generic

from jtemplate.syntax.nodes import Node, NodeKind

T = TypeVar('T')


class NodeVisitor(ABC, Generic[T]):
    """
    Abstract base class for syntax tree visitors.

    Subclasses implement ``visit_<kind>`` methods for each node kind they
    handle; extra positional arguments are passed through unchanged, which
    lets a visitor thread explicit context (such as a scope) through the walk
    instead of keeping it on the instance.
    """

    def visit(self, node: Node, *args) -> T:
        visitor = getattr(self, f"visit_{node.kind.value}", None)
        if visitor is None:
            return self.generic_visit(node, *args)
        return visitor(node, *args)

    def generic_visit(self, node: Node, *args) -> T:
        """
        Default visitor that raises an error.
        Subclasses should either implement specific visit_* methods
        or override this to provide default behavior.
        """
        raise NotImplementedError(
            f"Visitor {self.__class__.__name__} doesn't handle {node.kind.value}"
        )

    @classmethod
    def handled_kinds(cls) -> frozenset[NodeKind]:
        return frozenset(k for k in NodeKind if hasattr(cls, f"visit_{k.value}"))
