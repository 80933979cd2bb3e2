"""Placeholder segments inside identifiers.

A template identifier such as ``KTypeVTypeHashMap`` carries one placeholder
segment per slot it depends on. Specialization replaces each segment with
the capitalized name of a bound type:

    KTypeVTypeHashMap  [int, long]   -> IntLongHashMap
    KTypeArrayDeque    [generic]     -> ObjectArrayDeque
"""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Sequence

from jtemplate.specialize.options import PLACEHOLDERS

if TYPE_CHECKING:
    from jtemplate.specialize.options import TemplateOptions, Type

PLACEHOLDER_PATTERN = re.compile("|".join(PLACEHOLDERS))


def is_placeholder(text: str) -> bool:
    """True for a bare placeholder used as a type variable."""
    return text in PLACEHOLDERS


def has_placeholder(text: str) -> bool:
    return PLACEHOLDER_PATTERN.search(text) is not None


def placeholder_segments(text: str) -> List[str]:
    """Placeholder segments of `text`, left to right."""
    return PLACEHOLDER_PATTERN.findall(text)


def count_segments(text: str) -> int:
    return len(placeholder_segments(text))


def substitute_segments(text: str, values: Sequence['Type']) -> str:
    """Replace the Nth placeholder segment of `text` with the Nth value.

    Raises:
        IndexError: `text` has more segments than `values`.
    """
    it = iter(values)

    def repl(_m: re.Match) -> str:
        try:
            return next(it).capitalized
        except StopIteration:
            raise IndexError(f"not enough values for {text!r}") from None

    return PLACEHOLDER_PATTERN.sub(repl, text)


def substitute_spelled(text: str, options: 'TemplateOptions') -> str:
    """Replace each segment with the value of the slot it spells."""
    return PLACEHOLDER_PATTERN.sub(lambda m: options.value_of(m.group(0)).capitalized, text)
