"""Shared pytest fixtures for jtemplate tests."""

import re
from pathlib import Path

import pytest

from jtemplate.internals.report import Reporter
from jtemplate.specialize.options import TemplateOptions, Type
from jtemplate.specialize.processor import SignatureProcessor

CASES_DIR = Path(__file__).parent / "cases"


def normalize(text: str) -> str:
    """Collapse whitespace runs, as the expected outputs are written loosely."""
    return re.sub(r"\s+", " ", text.strip())


def specialize(source: str, ktype: Type, vtype: Type | None = None, reporter: Reporter | None = None) -> str:
    return SignatureProcessor(source).process(TemplateOptions(ktype, vtype), reporter)


def check(processor: SignatureProcessor, ktype: Type, vtype: Type | None, expected: str) -> None:
    output = processor.process(TemplateOptions(ktype, vtype))
    assert normalize(output) == normalize(expected), f"\nOutput:\n{output}\nExpected:\n{expected}"


@pytest.fixture()
def reporter() -> Reporter:
    """Reporter with no source attached."""
    return Reporter()


@pytest.fixture()
def cases_dir() -> Path:
    return CASES_DIR
