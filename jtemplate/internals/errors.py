# jtemplate/internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from jtemplate.internals.report import Span, Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    SYNTAX      = "syntax"
    UNSUPPORTED = "unsupported"
    BINDING     = "binding"
    ERASURE     = "erasure"
    DRIVER      = "driver"
    INTERNAL    = "internal"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.SYNTAX
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)

def emit(r: Optional[Reporter], em: ErrorMessage, span: Optional[Span], **kwargs) -> None:
    if r is None:
        return
    text = format_message(em.code, **kwargs)
    if em.severity == Severity.ERROR:
        r.error(em.code, text, span)
    else:
        r.warn(em.code, text, span)

def format_message(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

#
# --- Registry population
#

# Syntax errors - TE1xxx
_add(ErrorMessage("TE1001", Severity.ERROR,
    "unexpected character {char!r}",
    Category.SYNTAX, "The lexer found a character that starts no token (stray '#', '\\', unterminated literal)."))

_add(ErrorMessage("TE1002", Severity.ERROR,
    "unterminated comment",
    Category.SYNTAX, "A '/*' comment is never closed."))

_add(ErrorMessage("TE1003", Severity.ERROR,
    "expected {expected}, found {found}",
    Category.SYNTAX, "The structural parser expected a different token here."))

_add(ErrorMessage("TE1004", Severity.ERROR,
    "unbalanced '{bracket}'",
    Category.SYNTAX, "An opening bracket is never closed or a closing bracket has no opener."))

# Unsupported constructs - TE2xxx
_add(ErrorMessage("TE2001", Severity.ERROR,
    "identifier '{name}' has {count} placeholder segments but only {slots} slot(s) are available",
    Category.UNSUPPORTED, "A template identifier may carry at most one placeholder segment per slot."))

_add(ErrorMessage("TE2002", Severity.ERROR,
    "placeholder '{name}' cannot take type arguments",
    Category.UNSUPPORTED, "A bare placeholder is a type variable; 'KType<X>' has no specialization."))

_add(ErrorMessage("TE2003", Severity.ERROR,
    "no substitution rule for {kind} node",
    Category.UNSUPPORTED, "A recognized construct reached the engine without a rewrite rule."))

# Binding errors - TE3xxx
_add(ErrorMessage("TE3001", Severity.ERROR,
    "template uses '{placeholder}' but the binding has no value for it",
    Category.BINDING, "A two-slot template was specialized with a single-slot binding."))

_add(ErrorMessage("TE3002", Severity.ERROR,
    "single-slot template cannot take a second binding ({vtype})",
    Category.BINDING, "VType was bound for a template that only uses KType."))

_add(ErrorMessage("TE3003", Severity.ERROR,
    "unknown type '{name}' (expected one of: {choices})",
    Category.BINDING, "Type names are 'generic' or a Java primitive."))

# Internal rewrite errors - TE4xxx
_add(ErrorMessage("TE4001", Severity.ERROR,
    "rewrite operations overlap or are out of order: {first} / {second}",
    Category.INTERNAL, "The substitution engine produced overlapping token ranges (engine bug)."))

_add(ErrorMessage("TE4002", Severity.ERROR,
    "rewrite operation {op} lies outside tokens [{start}, {end})",
    Category.INTERNAL, "A rewrite referenced tokens outside the rendered range (engine bug)."))

# Driver errors - TE5xxx
_add(ErrorMessage("TE5001", Severity.ERROR,
    "cannot read {path}: {reason}",
    Category.DRIVER, "The template file could not be read."))

_add(ErrorMessage("TE5002", Severity.ERROR,
    "invalid manifest {path}: {reason}",
    Category.DRIVER, "templates.toml is missing or malformed."))

_add(ErrorMessage("TE5003", Severity.ERROR,
    "cannot write {path}: {reason}",
    Category.DRIVER, "The specialized output could not be written."))

_add(ErrorMessage("TE5004", Severity.ERROR,
    "output {path} for ({options}) collides with ({other})",
    Category.DRIVER, "Two bindings of one template map to the same output file; the first one is kept."))

# Warnings - TW0xxx
_add(ErrorMessage("TW0001", Severity.WARNING,
    "type arguments of '{name}' reference no template placeholder; '{name}' erased to '{erased}'",
    Category.ERASURE, "Arguments such as 'KTypeBar<B>' cannot be mapped to slots and default to Object."))

_add(ErrorMessage("TW0002", Severity.WARNING,
    "'{placeholder}' is bound to {type} inside non-template type '{name}'; erased to Object",
    Category.ERASURE, "Java type arguments cannot be primitive; the argument was replaced by Object."))
