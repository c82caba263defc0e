"""Sample values with hand-written encode/decode logic, used across the tests."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from token_oracle.decoder import END
from token_oracle.errors import TokenDecodeError
from token_oracle.visitor import Visitor


# ── primitive seeds ──────────────────────────────────
class Primitive(Visitor):
    def __init__(self, what: str):
        self.what = what

    def expecting(self):
        return self.what

    def _same(self, v):
        return v

    visit_bool = visit_i64 = visit_i128 = visit_u64 = visit_u128 = _same
    visit_f64 = visit_str = visit_bytes = _same


def seed(op: str, what: str):
    return lambda decoder: getattr(decoder, op)(Primitive(what))


i32 = seed("decode_i32", "i32")
u32 = seed("decode_u32", "u32")
f64 = seed("decode_f64", "f64")
string = seed("decode_str", "a string")
identifier = seed("decode_identifier", "an identifier")


class _Vec(Visitor):
    def __init__(self, element):
        self.element = element

    def expecting(self):
        return "a sequence"

    def visit_seq(self, seq):
        return list(seq.elements(self.element))


def vec_of(element):
    return lambda decoder: decoder.decode_seq(_Vec(element))


class _Option(Visitor):
    def __init__(self, inner):
        self.inner = inner

    def expecting(self):
        return "option"

    def visit_none(self):
        return None

    def visit_some(self, decoder):
        return self.inner(decoder)


def option_of(inner):
    return lambda decoder: decoder.decode_option(_Option(inner))


# ── struct ───────────────────────────────────────────
@dataclass
class Point:
    x: int
    y: int

    FIELDS = ("x", "y")

    def encode_to(self, enc):
        s = enc.encode_struct("Point", 2)
        s.field("x", lambda e: e.encode_i32(self.x))
        s.field("y", lambda e: e.encode_i32(self.y))
        return s.end()

    @classmethod
    def decode_from(cls, decoder):
        return decoder.decode_struct("Point", cls.FIELDS, _PointVisitor())


class _PointField(Visitor):
    def expecting(self):
        return "`x` or `y`"

    def visit_str(self, v):
        if v not in Point.FIELDS:
            raise TokenDecodeError.unknown_field(v, Point.FIELDS)
        return v


def _point_field(decoder):
    return decoder.decode_identifier(_PointField())


class _PointVisitor(Visitor):
    def expecting(self):
        return "struct Point"

    def visit_map(self, map):
        values = {}
        while True:
            key = map.next_key(_point_field)
            if key is END:
                break
            if key in values:
                raise TokenDecodeError.duplicate_field(key)
            values[key] = map.next_value(i32)
        for name in Point.FIELDS:
            if name not in values:
                raise TokenDecodeError.missing_field(name)
        return Point(**values)

    def visit_seq(self, seq):
        x = seq.next_element(i32)
        y = seq.next_element(i32)
        if x is END or y is END:
            raise TokenDecodeError.invalid_length(0 if x is END else 1, self)
        return Point(x, y)


# ── newtype struct ───────────────────────────────────
@dataclass
class Meters:
    value: float

    def encode_to(self, enc):
        return enc.encode_newtype_struct("Meters", self.value)

    @classmethod
    def decode_from(cls, decoder):
        return decoder.decode_newtype_struct("Meters", _MetersVisitor())


class _MetersVisitor(Visitor):
    def expecting(self):
        return "newtype struct Meters"

    def visit_newtype_struct(self, decoder):
        return Meters(f64(decoder))


# ── enum ─────────────────────────────────────────────
@dataclass(frozen=True)
class Shape:
    variant: str
    payload: Any = None

    VARIANTS = ("Empty", "Circle", "Rect", "Named")

    def encode_to(self, enc):
        index = self.VARIANTS.index(self.variant)
        if self.variant == "Empty":
            return enc.encode_unit_variant("Shape", index, "Empty")
        if self.variant == "Circle":
            return enc.encode_newtype_variant("Shape", index, "Circle", self.payload)
        if self.variant == "Rect":
            t = enc.encode_tuple_variant("Shape", index, "Rect", 2)
            for side in self.payload:
                t.element(lambda e, side=side: e.encode_u32(side))
            return t.end()
        s = enc.encode_struct_variant("Shape", index, "Named", 1)
        s.field("label", self.payload)
        return s.end()

    @classmethod
    def decode_from(cls, decoder):
        return decoder.decode_enum("Shape", cls.VARIANTS, ShapeVisitor())


class _VariantName(Visitor):
    def expecting(self):
        return "variant identifier"

    def visit_str(self, v):
        if v not in Shape.VARIANTS:
            raise TokenDecodeError.unknown_variant(v, Shape.VARIANTS)
        return v

    def visit_u64(self, v):
        if v >= len(Shape.VARIANTS):
            raise TokenDecodeError.invalid_value(f"integer `{v}`", "variant index 0 <= i < 4")
        return Shape.VARIANTS[v]


def variant_name(decoder):
    return decoder.decode_identifier(_VariantName())


class _Sides(Visitor):
    def expecting(self):
        return "tuple variant Shape::Rect"

    def visit_seq(self, seq):
        return tuple(seq.elements(u32))


class _Label(Visitor):
    def expecting(self):
        return "struct variant Shape::Named"

    def visit_map(self, map):
        label = None
        for key, value in map.entries(identifier, string):
            if key != "label":
                raise TokenDecodeError.unknown_field(key, ("label",))
            label = value
        if label is None:
            raise TokenDecodeError.missing_field("label")
        return label


class ShapeVisitor(Visitor):
    def __init__(self, name_seed=variant_name):
        self.name_seed = name_seed

    def expecting(self):
        return "enum Shape"

    def visit_enum(self, data):
        name, variant = data.variant(self.name_seed)
        if name == "Empty":
            variant.unit_variant()
            return Shape("Empty")
        if name == "Circle":
            return Shape("Circle", variant.newtype_variant(f64))
        if name == "Rect":
            return Shape("Rect", variant.tuple_variant(2, _Sides()))
        return Shape("Named", variant.struct_variant(("label",), _Label()))
