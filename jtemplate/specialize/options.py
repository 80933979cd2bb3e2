from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from jtemplate.internals.exceptions import TemplateBindingError

PLACEHOLDERS = ("KType", "VType")


class Type(Enum):
    GENERIC = "generic"
    BYTE = "byte"
    CHAR = "char"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"

    def __str__(self) -> str:
        return self.value

    @property
    def is_generic(self) -> bool:
        return self is Type.GENERIC

    @property
    def is_primitive(self) -> bool:
        return self is not Type.GENERIC

    @property
    def type_name(self) -> str:
        """Java spelling of the type: `int`, or `Object` for generic."""
        return "Object" if self.is_generic else self.value

    @property
    def capitalized(self) -> str:
        """Identifier segment: `Int`, `Object`."""
        return self.type_name[0].upper() + self.type_name[1:]

    @property
    def plural(self) -> str:
        """Comment plural: `ints`, `Objects`."""
        return self.type_name + "s"

    @classmethod
    def parse(cls, text: Union[str, "Type"]) -> "Type":
        if isinstance(text, Type):
            return text
        key = text.strip().lower()
        if key == "object":
            return cls.GENERIC
        for t in cls:
            if t.value == key:
                return t
        raise TemplateBindingError("TE3003", name=text, choices=", ".join(t.value for t in cls))


@dataclass(frozen=True)
class TemplateOptions:
    """Binding of the template slots for one specialization request."""
    ktype: Type
    vtype: Optional[Type] = None

    @property
    def has_vtype(self) -> bool:
        return self.vtype is not None

    def is_ktype_primitive(self) -> bool:
        return self.ktype.is_primitive

    def is_ktype_generic(self) -> bool:
        return self.ktype.is_generic

    def is_vtype_primitive(self) -> bool:
        return self.value_of("VType").is_primitive

    def is_vtype_generic(self) -> bool:
        return self.value_of("VType").is_generic

    def value_of(self, placeholder: str) -> Type:
        if placeholder == "KType":
            return self.ktype
        if placeholder == "VType":
            if self.vtype is None:
                raise TemplateBindingError("TE3001", placeholder=placeholder)
            return self.vtype
        raise KeyError(placeholder)

    @classmethod
    def for_template(cls, slot_count: int, ktype, vtype=None) -> "TemplateOptions":
        """Binding checked against the number of slots the template uses."""
        k = Type.parse(ktype)
        v = Type.parse(vtype) if vtype is not None else None
        if slot_count < 2 and v is not None:
            raise TemplateBindingError("TE3002", vtype=v)
        if slot_count >= 2 and v is None:
            raise TemplateBindingError("TE3001", placeholder="VType")
        return cls(k, v)

    def __str__(self) -> str:
        if self.vtype is None:
            return f"KType={self.ktype}"
        return f"KType={self.ktype}, VType={self.vtype}"
