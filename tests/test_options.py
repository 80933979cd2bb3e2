"""Tests for Type and TemplateOptions."""

import pytest

from jtemplate.internals.exceptions import TemplateBindingError
from jtemplate.specialize.naming import (
    count_segments, has_placeholder, is_placeholder, substitute_segments, substitute_spelled,
)
from jtemplate.specialize.options import TemplateOptions, Type


class TestType:
    @pytest.mark.parametrize("t,name,cap,plural", [
        (Type.INT, "int", "Int", "ints"),
        (Type.BOOLEAN, "boolean", "Boolean", "booleans"),
        (Type.GENERIC, "Object", "Object", "Objects"),
    ])
    def test_names(self, t, name, cap, plural):
        assert (t.type_name, t.capitalized, t.plural) == (name, cap, plural)

    def test_predicates(self):
        assert Type.GENERIC.is_generic and not Type.GENERIC.is_primitive
        assert all(t.is_primitive for t in Type if t is not Type.GENERIC)

    def test_parse(self):
        assert Type.parse("long") is Type.LONG
        assert Type.parse(" Generic ") is Type.GENERIC
        assert Type.parse("Object") is Type.GENERIC
        assert Type.parse(Type.CHAR) is Type.CHAR

    def test_parse_unknown(self):
        with pytest.raises(TemplateBindingError) as exc:
            Type.parse("string")
        assert exc.value.code == "TE3003"


class TestTemplateOptions:
    def test_slots(self):
        opts = TemplateOptions(Type.INT, Type.GENERIC)
        assert opts.has_vtype
        assert opts.is_ktype_primitive() and not opts.is_ktype_generic()
        assert opts.is_vtype_generic() and not opts.is_vtype_primitive()
        assert opts.value_of("KType") is Type.INT
        assert opts.value_of("VType") is Type.GENERIC

    def test_absent_vtype(self):
        opts = TemplateOptions(Type.INT)
        assert not opts.has_vtype
        with pytest.raises(TemplateBindingError) as exc:
            opts.is_vtype_primitive()
        assert exc.value.code == "TE3001"

    def test_immutable(self):
        opts = TemplateOptions(Type.INT)
        with pytest.raises(AttributeError):
            opts.ktype = Type.LONG

    def test_for_template(self):
        assert TemplateOptions.for_template(1, "int") == TemplateOptions(Type.INT)
        assert TemplateOptions.for_template(2, "int", "char") == TemplateOptions(Type.INT, Type.CHAR)
        with pytest.raises(TemplateBindingError) as exc:
            TemplateOptions.for_template(1, "int", "long")
        assert exc.value.code == "TE3002"

    def test_str(self):
        assert str(TemplateOptions(Type.INT, Type.GENERIC)) == "KType=int, VType=generic"


class TestNaming:
    def test_segments(self):
        assert is_placeholder("KType") and not is_placeholder("KTypeFoo")
        assert has_placeholder("defaultKTypeValue")
        assert count_segments("KTypeVTypeHashMap") == 2
        assert count_segments("Foo") == 0

    def test_positional_substitution(self):
        assert substitute_segments("KTypeVTypeMap", [Type.LONG, Type.INT]) == "LongIntMap"
        assert substitute_segments("VTypeKTypeMap", [Type.LONG, Type.INT]) == "LongIntMap"
        with pytest.raises(IndexError):
            substitute_segments("KTypeVTypeMap", [Type.INT])

    def test_spelled_substitution(self):
        opts = TemplateOptions(Type.INT, Type.LONG)
        assert substitute_spelled("VTypeKTypeMap", opts) == "LongIntMap"
