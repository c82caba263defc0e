"""Token model: a closed tagged union of every encoding event.

A :class:`Token` is one immutable record carrying a :class:`TokenKind` tag and
the payload fields that tag uses. Build tokens with the factory functions
below (``Bool(True)``, ``Seq(len=None)``, ``SeqEnd()``, ...), never by calling
``Token`` directly.
"""
from __future__ import annotations
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import numpy as np


class TokenKind(Enum):
    BOOL = "Bool"
    I8 = "I8"
    I16 = "I16"
    I32 = "I32"
    I64 = "I64"
    I128 = "I128"
    U8 = "U8"
    U16 = "U16"
    U32 = "U32"
    U64 = "U64"
    U128 = "U128"
    F32 = "F32"
    F64 = "F64"
    CHAR = "Char"
    STR = "Str"
    BYTES = "Bytes"
    NONE = "None"
    SOME = "Some"
    UNIT = "Unit"
    UNIT_STRUCT = "UnitStruct"
    UNIT_VARIANT = "UnitVariant"
    NEWTYPE_STRUCT = "NewtypeStruct"
    NEWTYPE_VARIANT = "NewtypeVariant"
    SEQ = "Seq"
    SEQ_END = "SeqEnd"
    TUPLE = "Tuple"
    TUPLE_END = "TupleEnd"
    TUPLE_STRUCT = "TupleStruct"
    TUPLE_STRUCT_END = "TupleStructEnd"
    TUPLE_VARIANT = "TupleVariant"
    TUPLE_VARIANT_END = "TupleVariantEnd"
    MAP = "Map"
    MAP_END = "MapEnd"
    FIELD = "Field"
    SKIPPED_FIELD = "SkippedField"
    STRUCT = "Struct"
    STRUCT_END = "StructEnd"
    STRUCT_VARIANT = "StructVariant"
    STRUCT_VARIANT_END = "StructVariantEnd"
    UNORDERED = "Unordered"


SIGNED_KINDS = (TokenKind.I8, TokenKind.I16, TokenKind.I32, TokenKind.I64, TokenKind.I128)
UNSIGNED_KINDS = (TokenKind.U8, TokenKind.U16, TokenKind.U32, TokenKind.U64, TokenKind.U128)
FLOAT_KINDS = (TokenKind.F32, TokenKind.F64)

# tokens without payload; rendered as their bare tag
UNIT_KINDS = frozenset({
    TokenKind.NONE, TokenKind.SOME, TokenKind.UNIT,
    TokenKind.SEQ_END, TokenKind.TUPLE_END, TokenKind.TUPLE_STRUCT_END,
    TokenKind.TUPLE_VARIANT_END, TokenKind.MAP_END, TokenKind.STRUCT_END,
    TokenKind.STRUCT_VARIANT_END,
})

VARIANT_KINDS = frozenset({
    TokenKind.UNIT_VARIANT, TokenKind.NEWTYPE_VARIANT,
    TokenKind.TUPLE_VARIANT, TokenKind.STRUCT_VARIANT,
})

# payload attributes per tag, in factory-argument order
PAYLOAD_FIELDS: Dict[TokenKind, tuple[str, ...]] = {
    TokenKind.UNIT_STRUCT: ("name",),
    TokenKind.UNIT_VARIANT: ("name", "variant_index", "variant"),
    TokenKind.NEWTYPE_STRUCT: ("name",),
    TokenKind.NEWTYPE_VARIANT: ("name", "variant_index", "variant"),
    TokenKind.SEQ: ("len",),
    TokenKind.TUPLE: ("len",),
    TokenKind.TUPLE_STRUCT: ("name", "len"),
    TokenKind.TUPLE_VARIANT: ("name", "variant_index", "variant", "len"),
    TokenKind.MAP: ("len",),
    TokenKind.STRUCT: ("name", "len"),
    TokenKind.STRUCT_VARIANT: ("name", "variant_index", "variant", "len"),
}


@dataclass(frozen=True, eq=False)
class Token:
    kind: TokenKind
    value: Any = None
    name: Optional[str] = None
    variant_index: Optional[int] = None
    variant: Optional[str] = None
    len: Optional[int] = None
    members: tuple[tuple["Token", ...], ...] = ()

    def _payload(self) -> tuple:
        return (self.value, self.name, self.variant_index, self.variant, self.len, self.members)

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        # field-wise `==` so that NaN payloads never compare equal
        return all(a == b for a, b in zip(self._payload(), other._payload()))

    def __hash__(self):
        return hash((self.kind, *self._payload()))

    def __str__(self):
        if self.kind in UNIT_KINDS:
            return self.kind.value
        return repr(self)

    def __repr__(self):
        tag = self.kind.value
        if self.kind in UNIT_KINDS:
            return "None_()" if self.kind is TokenKind.NONE else f"{tag}()"
        if self.kind is TokenKind.UNORDERED:
            return f"{tag}({[list(m) for m in self.members]!r})"
        if self.kind in (TokenKind.FIELD, TokenKind.SKIPPED_FIELD):
            return f"{tag}({self.name!r})"
        fields = PAYLOAD_FIELDS.get(self.kind)
        if fields is None:
            return f"{tag}({self.value!r})"
        args = ", ".join(f"{f}={getattr(self, f)!r}" for f in fields)
        return f"{tag}({args})"


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
_INT_BOUNDS: Dict[TokenKind, tuple[int, int]] = {
    TokenKind.I8: (int(np.iinfo(np.int8).min), int(np.iinfo(np.int8).max)),
    TokenKind.I16: (int(np.iinfo(np.int16).min), int(np.iinfo(np.int16).max)),
    TokenKind.I32: (int(np.iinfo(np.int32).min), int(np.iinfo(np.int32).max)),
    TokenKind.I64: (int(np.iinfo(np.int64).min), int(np.iinfo(np.int64).max)),
    TokenKind.I128: (-(1 << 127), (1 << 127) - 1),
    TokenKind.U8: (0, int(np.iinfo(np.uint8).max)),
    TokenKind.U16: (0, int(np.iinfo(np.uint16).max)),
    TokenKind.U32: (0, int(np.iinfo(np.uint32).max)),
    TokenKind.U64: (0, int(np.iinfo(np.uint64).max)),
    TokenKind.U128: (0, (1 << 128) - 1),
}


def int_fits(kind: TokenKind, value: int) -> bool:
    lo, hi = _INT_BOUNDS[kind]
    return lo <= value <= hi


def _integer(kind: TokenKind, value) -> Token:
    if isinstance(value, (bool, np.bool_)):
        raise TypeError(f"{kind.value} expects an integer, got {value!r}")
    value = operator.index(value)
    if not int_fits(kind, value):
        raise ValueError(f"{value} is out of range for {kind.value}")
    return Token(kind, value)


def _name(value, what: str = "name") -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a str, got {type(value).__name__}")
    return value


def _length(value, optional: bool = False) -> Optional[int]:
    if value is None and optional:
        return None
    value = operator.index(value)
    if value < 0:
        raise ValueError(f"len must be non-negative, got {value}")
    return value


def _variant(kind: TokenKind, name, variant_index, variant, **extra) -> Token:
    index = operator.index(variant_index)
    if not int_fits(TokenKind.U32, index):
        raise ValueError(f"variant_index {index} is out of range for u32")
    return Token(kind, name=_name(name), variant_index=index,
                 variant=_name(variant, "variant"), **extra)


def Bool(value) -> Token:
    if not isinstance(value, (bool, np.bool_)):
        raise TypeError(f"Bool expects a bool, got {value!r}")
    return Token(TokenKind.BOOL, bool(value))


def I8(value) -> Token:
    return _integer(TokenKind.I8, value)


def I16(value) -> Token:
    return _integer(TokenKind.I16, value)


def I32(value) -> Token:
    return _integer(TokenKind.I32, value)


def I64(value) -> Token:
    return _integer(TokenKind.I64, value)


def I128(value) -> Token:
    return _integer(TokenKind.I128, value)


def U8(value) -> Token:
    return _integer(TokenKind.U8, value)


def U16(value) -> Token:
    return _integer(TokenKind.U16, value)


def U32(value) -> Token:
    return _integer(TokenKind.U32, value)


def U64(value) -> Token:
    return _integer(TokenKind.U64, value)


def U128(value) -> Token:
    return _integer(TokenKind.U128, value)


def F32(value) -> Token:
    """Single-precision float; the payload is rounded to the nearest f32."""
    return Token(TokenKind.F32, float(np.float32(value)))


def F64(value) -> Token:
    return Token(TokenKind.F64, float(value))


def Char(value) -> Token:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"Char expects a single character, got {value!r}")
    return Token(TokenKind.CHAR, value)


def Str(value) -> Token:
    return Token(TokenKind.STR, _name(value, "Str payload"))


def Bytes(value) -> Token:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"Bytes expects a bytes-like value, got {type(value).__name__}")
    return Token(TokenKind.BYTES, bytes(value))


def None_() -> Token:
    return Token(TokenKind.NONE)


def Some() -> Token:
    return Token(TokenKind.SOME)


def Unit() -> Token:
    return Token(TokenKind.UNIT)


def UnitStruct(name) -> Token:
    return Token(TokenKind.UNIT_STRUCT, name=_name(name))


def UnitVariant(name, variant_index, variant) -> Token:
    return _variant(TokenKind.UNIT_VARIANT, name, variant_index, variant)


def NewtypeStruct(name) -> Token:
    return Token(TokenKind.NEWTYPE_STRUCT, name=_name(name))


def NewtypeVariant(name, variant_index, variant) -> Token:
    return _variant(TokenKind.NEWTYPE_VARIANT, name, variant_index, variant)


def Seq(len=None) -> Token:
    return Token(TokenKind.SEQ, len=_length(len, optional=True))


def SeqEnd() -> Token:
    return Token(TokenKind.SEQ_END)


def Tuple(len) -> Token:
    return Token(TokenKind.TUPLE, len=_length(len))


def TupleEnd() -> Token:
    return Token(TokenKind.TUPLE_END)


def TupleStruct(name, len) -> Token:
    return Token(TokenKind.TUPLE_STRUCT, name=_name(name), len=_length(len))


def TupleStructEnd() -> Token:
    return Token(TokenKind.TUPLE_STRUCT_END)


def TupleVariant(name, variant_index, variant, len) -> Token:
    return _variant(TokenKind.TUPLE_VARIANT, name, variant_index, variant, len=_length(len))


def TupleVariantEnd() -> Token:
    return Token(TokenKind.TUPLE_VARIANT_END)


def Map(len=None) -> Token:
    return Token(TokenKind.MAP, len=_length(len, optional=True))


def MapEnd() -> Token:
    return Token(TokenKind.MAP_END)


def Field(name) -> Token:
    return Token(TokenKind.FIELD, name=_name(name))


def SkippedField(name) -> Token:
    return Token(TokenKind.SKIPPED_FIELD, name=_name(name))


def Struct(name, len) -> Token:
    return Token(TokenKind.STRUCT, name=_name(name), len=_length(len))


def StructEnd() -> Token:
    return Token(TokenKind.STRUCT_END)


def StructVariant(name, variant_index, variant, len) -> Token:
    return _variant(TokenKind.STRUCT_VARIANT, name, variant_index, variant, len=_length(len))


def StructVariantEnd() -> Token:
    return Token(TokenKind.STRUCT_VARIANT_END)


def Unordered(members: Iterable[Iterable[Token]]) -> Token:
    """Alternative token runs that may appear in any relative order."""
    group = tuple(tuple(member) for member in members)
    for member in group:
        for token in member:
            if not isinstance(token, Token):
                raise TypeError(f"Unordered members must hold Tokens, got {token!r}")
    return Token(TokenKind.UNORDERED, members=group)


FACTORIES = {
    TokenKind.BOOL: Bool,
    TokenKind.I8: I8, TokenKind.I16: I16, TokenKind.I32: I32,
    TokenKind.I64: I64, TokenKind.I128: I128,
    TokenKind.U8: U8, TokenKind.U16: U16, TokenKind.U32: U32,
    TokenKind.U64: U64, TokenKind.U128: U128,
    TokenKind.F32: F32, TokenKind.F64: F64,
    TokenKind.CHAR: Char, TokenKind.STR: Str, TokenKind.BYTES: Bytes,
    TokenKind.NONE: None_, TokenKind.SOME: Some, TokenKind.UNIT: Unit,
    TokenKind.UNIT_STRUCT: UnitStruct, TokenKind.UNIT_VARIANT: UnitVariant,
    TokenKind.NEWTYPE_STRUCT: NewtypeStruct, TokenKind.NEWTYPE_VARIANT: NewtypeVariant,
    TokenKind.SEQ: Seq, TokenKind.SEQ_END: SeqEnd,
    TokenKind.TUPLE: Tuple, TokenKind.TUPLE_END: TupleEnd,
    TokenKind.TUPLE_STRUCT: TupleStruct, TokenKind.TUPLE_STRUCT_END: TupleStructEnd,
    TokenKind.TUPLE_VARIANT: TupleVariant, TokenKind.TUPLE_VARIANT_END: TupleVariantEnd,
    TokenKind.MAP: Map, TokenKind.MAP_END: MapEnd,
    TokenKind.FIELD: Field, TokenKind.SKIPPED_FIELD: SkippedField,
    TokenKind.STRUCT: Struct, TokenKind.STRUCT_END: StructEnd,
    TokenKind.STRUCT_VARIANT: StructVariant, TokenKind.STRUCT_VARIANT_END: StructVariantEnd,
    TokenKind.UNORDERED: Unordered,
}


# ---------------------------------------------------------------------------
# Unexpected-value descriptions (error messages)
# ---------------------------------------------------------------------------
_SHAPE_NAMES = {
    TokenKind.BYTES: "byte array",
    TokenKind.NONE: "Option value",
    TokenKind.SOME: "Option value",
    TokenKind.UNIT: "unit value",
    TokenKind.UNIT_STRUCT: "unit value",
    TokenKind.UNIT_VARIANT: "unit variant",
    TokenKind.NEWTYPE_STRUCT: "newtype struct",
    TokenKind.NEWTYPE_VARIANT: "newtype variant",
    TokenKind.SEQ: "sequence",
    TokenKind.TUPLE: "sequence",
    TokenKind.TUPLE_VARIANT: "tuple variant",
    TokenKind.MAP: "map",
    TokenKind.STRUCT_VARIANT: "struct variant",
    TokenKind.I128: "i128",
    TokenKind.U128: "u128",
}


def _quote(text: str) -> str:
    escaped = (text.replace("\\", "\\\\").replace('"', '\\"')
               .replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t"))
    return f'"{escaped}"'


def _float_text(value: float) -> str:
    if value != value:
        return "NaN"
    return repr(float(value))


def unexpected_for(kind: TokenKind, value: Any = None) -> str:
    """Describe a found value of shape `kind` the way error messages print it."""
    if kind is TokenKind.BOOL:
        return f"boolean `{'true' if value else 'false'}`"
    if kind in SIGNED_KINDS[:-1] or kind in UNSIGNED_KINDS[:-1]:
        return f"integer `{value}`"
    if kind in FLOAT_KINDS:
        return f"floating point `{_float_text(value)}`"
    if kind is TokenKind.CHAR:
        return f"character `{value}`"
    if kind is TokenKind.STR:
        return f"string {_quote(value)}"
    return _SHAPE_NAMES.get(kind, kind.value)


def describe_unexpected(token: Token) -> str:
    return unexpected_for(token.kind, token.value)
