"""Placeholder words in doc comments.

Doc comments are not parsed, only scanned for words that contain a
placeholder. Three forms are recognized:

    KTypes / VTypes   ->  ints, Objects        (plural of the bound type)
    KType / VType     ->  int                  (unchanged when generic)
    KTypeVTypeFoo     ->  IntLongFoo           (segments in scope order)

Words with several segments map them positionally onto the values of the
enclosing declaration, like identifiers in code. Without values, or with
more segments than values, each segment takes the value of the slot it
spells.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

from jtemplate.specialize.naming import count_segments, substitute_segments, substitute_spelled
from jtemplate.specialize.options import PLACEHOLDERS, TemplateOptions, Type
from jtemplate.specialize.rewriter import RewriteOp
from jtemplate.syntax.lexer import TokenSeq
from jtemplate.syntax.nodes import DocComment

DOC_WORD = re.compile(r"[\w$]*(?:%s)[\w$]*" % "|".join(PLACEHOLDERS))

PLURALS = {p + "s": p for p in PLACEHOLDERS}


def rewrite_doc_text(text: str, options: TemplateOptions,
                     values: Optional[Sequence[Type]] = None) -> str:
    def repl(m: re.Match) -> str:
        word = m.group(0)
        if word in PLURALS:
            return options.value_of(PLURALS[word]).plural
        if word in PLACEHOLDERS:
            value = options.value_of(word)
            return word if value.is_generic else value.type_name
        n = count_segments(word)
        if values is not None and 1 < n <= len(values):
            return substitute_segments(word, values[:n])
        return substitute_spelled(word, options)

    return DOC_WORD.sub(repl, text)


def doc_rewrite(tokens: TokenSeq, doc: DocComment, options: TemplateOptions,
                values: Optional[Sequence[Type]] = None) -> Optional[RewriteOp]:
    text = "".join(tokens[doc.start:doc.end])
    new = rewrite_doc_text(text, options, values)
    if new == text:
        return None
    return RewriteOp(doc.start, doc.end, new)
