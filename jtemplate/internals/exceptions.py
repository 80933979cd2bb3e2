"""Exceptions raised while lexing, parsing and specializing templates.

Each exception carries a catalog code (see ``jtemplate.internals.errors``), the
format arguments of its message and an optional source span, so that callers
can either catch it or turn it into a Reporter diagnostic.
"""
from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from jtemplate.internals.report import Span


class SpecializationError(Exception):
    """Base class for every failure of a single specialization request."""

    code = "TE0000"

    def __init__(self, code: Optional[str] = None, span: Optional['Span'] = None, **kwargs):
        from jtemplate.internals.errors import format_message

        self.code = code or self.code
        self.span = span
        self.kwargs = kwargs
        message = format_message(self.code, **kwargs)
        if span is not None:
            message = f"{message} (line {span.line}, column {span.col})"
        super().__init__(message)


class TemplateSyntaxError(SpecializationError):
    """The template source cannot be tokenized or structurally parsed."""
    code = "TE1003"


class UnsupportedConstructError(SpecializationError):
    """A recognized construct has no substitution rule."""
    code = "TE2003"


class TemplateBindingError(SpecializationError):
    """The binding does not fit the template (missing or extra slot, unknown type)."""
    code = "TE3001"


class RewriteOverlapError(SpecializationError):
    """Rewrite operations overlap; always an engine bug."""
    code = "TE4001"


class ManifestError(SpecializationError):
    """templates.toml is missing or malformed."""
    code = "TE5002"


class TemplateReadError(SpecializationError):
    """The template file exists but its contents cannot be decoded."""
    code = "TE5001"
