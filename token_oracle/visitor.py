"""Visitor-callback protocol.

A decoder hands every decoded shape to exactly one ``visit_*`` callback of the
visitor it was given. :class:`Visitor` implements each callback as a rejection
(``InvalidType`` naming the visitor's :meth:`~Visitor.expecting` text), so a
concrete visitor only overrides the shapes it accepts. Narrower integer
callbacks forward to the 64-bit one of the same signedness, ``visit_f32`` to
``visit_f64`` and ``visit_char`` to ``visit_str``.
"""
from __future__ import annotations
from typing import Any

from .decoder import END
from .errors import InvalidType
from .models import TokenKind, unexpected_for


class Visitor:
    def expecting(self) -> str:
        return "a value"

    def _reject(self, found: str):
        raise InvalidType(found, self.expecting())

    # ── scalars ────────────────────────────────────────
    def visit_bool(self, v: bool) -> Any:
        self._reject(unexpected_for(TokenKind.BOOL, v))

    def visit_i8(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i16(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i32(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i64(self, v: int) -> Any:
        self._reject(unexpected_for(TokenKind.I64, v))

    def visit_i128(self, v: int) -> Any:
        self._reject(f"integer `{v}` as i128")

    def visit_u8(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u16(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u32(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u64(self, v: int) -> Any:
        self._reject(unexpected_for(TokenKind.U64, v))

    def visit_u128(self, v: int) -> Any:
        self._reject(f"integer `{v}` as u128")

    def visit_f32(self, v: float) -> Any:
        return self.visit_f64(v)

    def visit_f64(self, v: float) -> Any:
        self._reject(unexpected_for(TokenKind.F64, v))

    def visit_char(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_str(self, v: str) -> Any:
        self._reject(unexpected_for(TokenKind.STR, v))

    def visit_bytes(self, v: bytes) -> Any:
        self._reject(unexpected_for(TokenKind.BYTES))

    # ── optional / unit / wrappers ─────────────────────
    def visit_none(self) -> Any:
        self._reject(unexpected_for(TokenKind.NONE))

    def visit_some(self, decoder) -> Any:
        self._reject(unexpected_for(TokenKind.SOME))

    def visit_unit(self) -> Any:
        self._reject(unexpected_for(TokenKind.UNIT))

    def visit_newtype_struct(self, decoder) -> Any:
        self._reject(unexpected_for(TokenKind.NEWTYPE_STRUCT))

    # ── containers ─────────────────────────────────────
    def visit_seq(self, seq) -> Any:
        self._reject(unexpected_for(TokenKind.SEQ))

    def visit_map(self, map) -> Any:
        self._reject(unexpected_for(TokenKind.MAP))

    def visit_enum(self, data) -> Any:
        self._reject("enum")


class IgnoredAny(Visitor):
    """Consumes one complete value of any shape and discards it."""

    def expecting(self) -> str:
        return "anything at all"

    @classmethod
    def decode_from(cls, decoder) -> None:
        return decoder.decode_ignored_any(cls())

    def _ignore(self, *_):
        return None

    visit_bool = visit_i64 = visit_i128 = visit_u64 = visit_u128 = _ignore
    visit_f64 = visit_str = visit_bytes = visit_none = visit_unit = _ignore

    def visit_some(self, decoder):
        return decoder.decode_ignored_any(self)

    visit_newtype_struct = visit_some

    def visit_seq(self, seq):
        while seq.next_element(IgnoredAny.decode_from) is not END:
            pass

    def visit_map(self, map):
        while map.next_entry(IgnoredAny.decode_from, IgnoredAny.decode_from) is not END:
            pass

    def visit_enum(self, data):
        _, variant = data.variant(IgnoredAny.decode_from)
        _visit_variant_payload(variant, IgnoredAny)


class ValueVisitor(Visitor):
    """Rebuilds plain Python values from a self-describing stream.

    Sequences become lists, maps and structs dicts, unit/None ``None``. Enum
    variants become the variant name (unit) or ``{name: payload}``.
    """

    def expecting(self) -> str:
        return "any value"

    @classmethod
    def decode_from(cls, decoder) -> Any:
        return decoder.decode_any(cls())

    def _same(self, v):
        return v

    visit_bool = visit_i64 = visit_i128 = visit_u64 = visit_u128 = _same
    visit_f64 = visit_str = visit_bytes = _same

    def visit_none(self):
        return None

    visit_unit = visit_none

    def visit_some(self, decoder):
        return decoder.decode_any(self)

    visit_newtype_struct = visit_some

    def visit_seq(self, seq):
        return list(seq.elements(ValueVisitor.decode_from))

    def visit_map(self, map):
        return {
            _hashable(key): value
            for key, value in map.entries(ValueVisitor.decode_from, ValueVisitor.decode_from)
        }

    def visit_enum(self, data):
        name, variant = data.variant(ValueVisitor.decode_from)
        payload = _visit_variant_payload(variant, ValueVisitor)
        if variant.shape is TokenKind.UNIT_VARIANT:
            return name
        return {name: payload}


def _visit_variant_payload(variant, visitor_cls):
    shape = variant.shape
    if shape is TokenKind.UNIT_VARIANT:
        return variant.unit_variant()
    if shape is TokenKind.NEWTYPE_VARIANT:
        return variant.newtype_variant(visitor_cls.decode_from)
    if shape is TokenKind.TUPLE_VARIANT:
        return variant.tuple_variant(variant.size_hint, visitor_cls())
    return variant.struct_variant((), visitor_cls())


def _hashable(key):
    if isinstance(key, list):
        return tuple(_hashable(k) for k in key)
    if isinstance(key, dict):
        return tuple((_hashable(k), _hashable(v)) for k, v in key.items())
    return key
