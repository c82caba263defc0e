"""
tests/test_decoder.py
─────────────────────
1) 스칼라 / 컨테이너 디코딩 + 종료 토큰 검사
2) enum: variant 선택 → payload 형태별 접근
3) self-describing / 에러 메시지
"""
import pytest

from sample_types import (
    Meters, Point, Primitive, Shape, ShapeVisitor, i32, identifier,
    option_of, seed, string, u32, vec_of,
)
from token_oracle.decoder import END, TokenDecoder
from token_oracle.errors import (
    DuplicateField, EndOfTokens, ExpectedToken, InvalidLength, InvalidType,
    InvalidValue, MissingField, NotSelfDescribing, TrailingTokens,
    UnknownField, UnknownVariant, UnsupportedEnumDecoderMethod,
)
from token_oracle.models import (
    Bool, Bytes, Char, F32, F64, Field, I8, I16, I32, I64, I128, Map, MapEnd,
    NewtypeStruct, NewtypeVariant, None_, Seq, SeqEnd, SkippedField, Some,
    Str, Struct, StructEnd, StructVariant, StructVariantEnd, Tuple, TupleEnd,
    TupleStruct, TupleStructEnd, TupleVariant, TupleVariantEnd, U8, U16, U32,
    U64, U128, Unit, UnitStruct, UnitVariant,
)
from token_oracle.visitor import IgnoredAny, ValueVisitor, Visitor


# ----------------------------- Helper ---------------------------------
def _dec(*tokens, **flags):
    return TokenDecoder(tokens, **flags)


class _FirstOnly(Visitor):
    """Reads a single element and leaves the rest to the end-marker check."""

    def expecting(self):
        return "one element"

    def visit_seq(self, seq):
        return seq.next_element(u32)


# ----------------------------------------------------------------------
@pytest.mark.parametrize("op, token, value", [
    ("decode_bool", Bool(True), True),
    ("decode_i8", I8(-8), -8),
    ("decode_i16", I16(-16), -16),
    ("decode_i32", I32(-32), -32),
    ("decode_i64", I64(-64), -64),
    ("decode_i128", I128(-(2 ** 100)), -(2 ** 100)),
    ("decode_u8", U8(8), 8),
    ("decode_u16", U16(16), 16),
    ("decode_u32", U32(32), 32),
    ("decode_u64", U64(2 ** 64 - 1), 2 ** 64 - 1),
    ("decode_u128", U128(2 ** 100), 2 ** 100),
    ("decode_f32", F32(0.5), 0.5),
    ("decode_f64", F64(1.25), 1.25),
    ("decode_char", Char("c"), "c"),
    ("decode_str", Str("hi"), "hi"),
    ("decode_bytes", Bytes(b"\x01\x02"), b"\x01\x02"),
])
def test_scalars(op, token, value):
    assert _dec(token).decode(seed(op, "a scalar")) == value


def test_wrong_tag_is_invalid_type():
    with pytest.raises(InvalidType) as info:
        _dec(Bool(True)).decode(i32)
    assert str(info.value) == "invalid type: expected i32, found boolean `true`"


def test_default_callbacks_reject():
    class OnlyStrings(Visitor):
        def expecting(self):
            return "a string"

        def visit_str(self, v):
            return v

    assert _dec(Char("x")).decode_char(OnlyStrings()) == "x"
    with pytest.raises(InvalidType) as info:
        _dec(I128(5)).decode_i128(OnlyStrings())
    assert info.value == InvalidType("integer `5` as i128", "a string")
    with pytest.raises(InvalidType):
        _dec(U8(1)).decode_u8(OnlyStrings())


def test_end_of_tokens():
    with pytest.raises(EndOfTokens) as info:
        _dec().decode(i32)
    assert str(info.value) == "end of tokens"


def test_trailing_tokens():
    d = _dec(Bool(True), Bool(False))
    with pytest.raises(TrailingTokens) as info:
        d.decode(seed("decode_bool", "bool"))
    assert str(info.value) == "1 trailing tokens after decoding"
    assert d.remaining() == 1


def test_single_pushback():
    d = _dec(Unit())
    d._revisit(Unit())
    with pytest.raises(RuntimeError):
        d._revisit(Unit())


# ----------------------------------------------------------------------
def test_option():
    assert _dec(None_()).decode(option_of(u32)) is None
    assert _dec(Some(), U32(3)).decode(option_of(u32)) == 3
    with pytest.raises(InvalidType) as info:
        _dec(Unit()).decode(option_of(u32))
    assert info.value == InvalidType("unit value", "option")


def test_unit_and_unit_struct():
    class UnitVisitor(Visitor):
        def expecting(self):
            return "unit"

        def visit_unit(self):
            return "()"

    assert _dec(Unit()).decode_unit(UnitVisitor()) == "()"
    assert _dec(UnitStruct("Marker")).decode_unit_struct("Marker", UnitVisitor()) == "()"
    with pytest.raises(InvalidValue) as info:
        _dec(UnitStruct("Other")).decode_unit_struct("Marker", UnitVisitor())
    assert str(info.value) == "invalid value: expected unit, found unit value"


def test_newtype_struct():
    assert _dec(NewtypeStruct("Meters"), F64(2.5)).decode(Meters.decode_from) == Meters(2.5)
    with pytest.raises(InvalidValue):
        _dec(NewtypeStruct("Feet"), F64(2.5)).decode(Meters.decode_from)


# ----------------------------------------------------------------------
def test_seq_one_element():
    assert _dec(Seq(len=None), U32(1), SeqEnd()).decode(vec_of(u32)) == [1]
    assert _dec(Seq(len=0), SeqEnd()).decode(vec_of(u32)) == []


def test_seq_wrong_end_marker():
    with pytest.raises(ExpectedToken) as info:
        _dec(Seq(len=None), U32(1), TupleEnd()).decode_seq(_FirstOnly())
    assert str(info.value) == "expected token SeqEnd"
    assert info.value == ExpectedToken(SeqEnd())


def test_seq_unread_elements():
    with pytest.raises(ExpectedToken):
        _dec(Seq(len=2), U32(1), U32(2), SeqEnd()).decode_seq(_FirstOnly())


def test_size_hint_is_advisory():
    class Hint(Visitor):
        def visit_seq(self, seq):
            return seq.size_hint, list(seq.elements(u32))

    assert _dec(Seq(len=5), U32(1), SeqEnd()).decode_seq(Hint()) == (5, [1])
    assert _dec(Seq(len=None), SeqEnd()).decode_seq(Hint()) == (None, [])


def test_cursor_reports_end_repeatedly():
    class Twice(Visitor):
        def visit_seq(self, seq):
            return seq.next_element(u32), seq.next_element(u32), seq.exhausted

    assert _dec(Seq(len=0), SeqEnd()).decode_seq(Twice()) == (END, END, True)


def test_tuple_and_tuple_struct():
    class Pair(Visitor):
        def expecting(self):
            return "a pair"

        def visit_seq(self, seq):
            return tuple(seq.elements(u32))

    assert _dec(Tuple(2), U32(1), U32(2), TupleEnd()).decode_tuple(2, Pair()) == (1, 2)
    assert _dec(TupleStruct("P", 2), U32(1), U32(2), TupleStructEnd()) \
        .decode_tuple_struct("P", 2, Pair()) == (1, 2)
    with pytest.raises(InvalidLength) as info:
        _dec(Tuple(3), U32(1), U32(2), U32(3), TupleEnd()).decode_tuple(2, Pair())
    assert str(info.value) == "invalid length 3, expected a pair"
    with pytest.raises(InvalidValue):
        _dec(TupleStruct("Q", 2)).decode_tuple_struct("P", 2, Pair())


def test_map():
    class StrToU32(Visitor):
        def visit_map(self, map):
            return dict(map.entries(string, u32))

    tokens = [Map(len=2), Str("a"), U32(1), Str("b"), U32(2), MapEnd()]
    assert TokenDecoder(tokens).decode_map(StrToU32()) == {"a": 1, "b": 2}
    # a foreign end marker is read as the next key
    with pytest.raises(InvalidType):
        _dec(Map(len=None), Str("a"), U32(1), SeqEnd()).decode_map(StrToU32())


def test_map_cursor_bound_to_map_end():
    class FirstEntry(Visitor):
        def visit_map(self, map):
            return map.next_entry(string, u32)

    d = _dec(Map(len=None), Str("a"), U32(1), MapEnd())
    assert d.decode(lambda dd: dd.decode_map(FirstEntry())) == ("a", 1)
    with pytest.raises(ExpectedToken) as info:
        _dec(Map(len=None), Str("a"), U32(1), SeqEnd()).decode_map(FirstEntry())
    assert str(info.value) == "expected token MapEnd"


# ----------------------------------------------------------------------
def test_struct():
    tokens = [Struct("Point", 2), Field("x"), I32(1), Field("y"), I32(2), StructEnd()]
    assert TokenDecoder(tokens).decode(Point.decode_from) == Point(1, 2)


def test_struct_skipped_fields_are_dropped():
    tokens = [
        Struct("Point", 2), SkippedField("w"), Field("x"), I32(1),
        SkippedField("z"), Field("y"), I32(2), SkippedField("q"), StructEnd(),
    ]
    assert TokenDecoder(tokens).decode(Point.decode_from) == Point(1, 2)


def test_struct_from_seq():
    tokens = [Seq(len=2), I32(3), I32(4), SeqEnd()]
    assert TokenDecoder(tokens).decode(Point.decode_from) == Point(3, 4)


@pytest.mark.parametrize("tokens, error", [
    ([Struct("Point", 1), Field("x"), I32(1), StructEnd()], MissingField("y")),
    ([Struct("Point", 2), Field("x"), I32(1), Field("x"), I32(1), StructEnd()],
     DuplicateField("x")),
    ([Struct("Point", 1), Field("z"), I32(1), StructEnd()],
     UnknownField("z", ("x", "y"))),
    ([Struct("Line", 0), StructEnd()], InvalidValue("Struct", "struct Point")),
    ([Map(len=0), MapEnd()], InvalidType("map", "struct Point")),
])
def test_struct_errors(tokens, error):
    with pytest.raises(type(error)) as info:
        TokenDecoder(tokens).decode(Point.decode_from)
    assert info.value == error


def test_unknown_field_message():
    assert str(UnknownField("z", ("x", "y"))) == 'unknown field z, expected one of ["x", "y"]'


def test_identifier_accepts_str_and_field():
    assert _dec(Str("x")).decode(identifier) == "x"
    assert _dec(Field("y")).decode(identifier) == "y"
    with pytest.raises(InvalidType):
        _dec(U8(0)).decode(identifier)


# ----------------------------------------------------------------------
@pytest.mark.parametrize("tokens, value", [
    ([UnitVariant("Shape", 0, "Empty")], Shape("Empty")),
    ([NewtypeVariant("Shape", 1, "Circle"), F64(1.5)], Shape("Circle", 1.5)),
    ([TupleVariant("Shape", 2, "Rect", 2), U32(2), U32(3), TupleVariantEnd()],
     Shape("Rect", (2, 3))),
    ([StructVariant("Shape", 3, "Named", 1), Field("label"), Str("x"), StructVariantEnd()],
     Shape("Named", "x")),
])
def test_enum_variants(tokens, value):
    assert TokenDecoder(tokens).decode(Shape.decode_from) == value


def test_enum_by_index():
    def by_index(decoder):
        return decoder.decode_u32(Primitive("variant index"))

    class IndexVisitor(Visitor):
        def visit_enum(self, data):
            index, variant = data.variant(by_index)
            variant.unit_variant()
            return index

    d = _dec(UnitVariant("Shape", 7, "Empty"))
    assert d.decode_enum("Shape", Shape.VARIANTS, IndexVisitor()) == 7


def test_enum_unknown_variant():
    with pytest.raises(UnknownVariant) as info:
        _dec(UnitVariant("Shape", 0, "Blob")).decode(Shape.decode_from)
    assert str(info.value) == \
        'unknown variant Blob, expected one of ["Empty", "Circle", "Rect", "Named"]'


def test_enum_wrong_name_or_tag():
    with pytest.raises(InvalidValue):
        _dec(UnitVariant("Color", 0, "Empty")).decode(Shape.decode_from)
    with pytest.raises(InvalidType) as info:
        _dec(Str("Empty")).decode(Shape.decode_from)
    assert info.value == InvalidType('string "Empty"', "enum Shape")


def test_enum_decoder_rejects_other_methods():
    def as_bool(decoder):
        return decoder.decode_bool(Primitive("bool"))

    with pytest.raises(UnsupportedEnumDecoderMethod) as info:
        _dec(UnitVariant("Shape", 0, "Empty")).decode(
            lambda d: d.decode_enum("Shape", Shape.VARIANTS, ShapeVisitor(as_bool)))
    assert str(info.value) == "use of unsupported enum decoder method"


def test_enum_decoder_reports_human_readable():
    seen = []

    def name_seed(decoder):
        seen.append(decoder.human_readable)
        return decoder.decode_str(Primitive("name"))

    d = _dec(UnitVariant("Shape", 0, "Empty"), human_readable=False)
    assert d.decode(lambda dd: dd.decode_enum("Shape", Shape.VARIANTS, ShapeVisitor(name_seed))) \
        == Shape("Empty")
    assert seen == [False]


def test_variant_shape_must_match():
    with pytest.raises(InvalidType) as info:
        _dec(NewtypeVariant("Shape", 0, "Empty"), F64(1.0)).decode(Shape.decode_from)
    assert info.value == InvalidType("newtype variant", "unit variant")


def test_tuple_variant_end_checked():
    with pytest.raises(InvalidType):
        _dec(TupleVariant("Shape", 2, "Rect", 2), U32(2), U32(3), StructVariantEnd()) \
            .decode(Shape.decode_from)


# ----------------------------------------------------------------------
def test_decode_any_requires_self_describing():
    for method in ("decode_any", "decode_ignored_any"):
        d = _dec(Bool(True), self_describing=False)
        with pytest.raises(NotSelfDescribing) as info:
            getattr(d, method)(ValueVisitor())
        assert d.remaining() == 1
    assert str(info.value) == (
        "attempted to decode as self-describing when decoder is not set as self-describing"
    )


def test_decode_any_rebuilds_values():
    tokens = [
        Map(len=None),
        Str("point"), Struct("Point", 2), Field("x"), I32(1), Field("y"), I32(2), StructEnd(),
        Str("list"), Seq(len=2), Some(), U8(1), None_(), SeqEnd(),
        Str("tuple"), Tuple(2), Char("a"), Unit(), TupleEnd(),
        Str("shape"), UnitVariant("Shape", 0, "Empty"),
        Str("circle"), NewtypeVariant("Shape", 1, "Circle"), F64(1.5),
        Str("meters"), NewtypeStruct("Meters"), F64(3.0),
        MapEnd(),
    ]
    assert TokenDecoder(tokens).decode(ValueVisitor.decode_from) == {
        "point": {"x": 1, "y": 2},
        "list": [1, None],
        "tuple": ["a", None],
        "shape": "Empty",
        "circle": {"Circle": 1.5},
        "meters": 3.0,
    }


def test_decode_any_rejects_end_markers():
    with pytest.raises(InvalidType) as info:
        _dec(SeqEnd()).decode(ValueVisitor.decode_from)
    assert info.value == InvalidType("SeqEnd", "any value")


def test_ignored_any_consumes_whole_value():
    tokens = [
        Seq(len=None),
        StructVariant("Shape", 3, "Named", 1), Field("label"), Str("x"), StructVariantEnd(),
        TupleVariant("Shape", 2, "Rect", 2), U32(2), U32(3), TupleVariantEnd(),
        Map(len=1), Str("k"), Bytes(b"v"), MapEnd(),
        SeqEnd(),
    ]
    d = TokenDecoder(tokens)
    assert d.decode(IgnoredAny.decode_from) is None
    assert d.remaining() == 0


# ----------------------------------------------------------------------
def test_flags_from_environment(monkeypatch):
    monkeypatch.setenv("TOKEN_ORACLE_SELF_DESCRIBING", "false")
    monkeypatch.setenv("TOKEN_ORACLE_HUMAN_READABLE", "false")
    d = _dec()
    assert d.self_describing is False and d.human_readable is False
    assert _dec(self_describing=True).self_describing is True


def test_flags_default_true(monkeypatch):
    monkeypatch.delenv("TOKEN_ORACLE_SELF_DESCRIBING", raising=False)
    monkeypatch.delenv("TOKEN_ORACLE_HUMAN_READABLE", raising=False)
    d = _dec()
    assert d.self_describing is True and d.human_readable is True


# ── 같은 variant, 다른 payload 형태 ───────────────────
class _ByShape(Visitor):
    """Picks the payload access from the variant token's shape."""

    def expecting(self):
        return "enum E"

    def visit_enum(self, data):
        name, variant = data.variant(identifier)
        shape = variant.shape.value
        if shape == "UnitVariant":
            return name, shape, variant.unit_variant()
        if shape == "NewtypeVariant":
            return name, shape, variant.newtype_variant(u32)
        if shape == "TupleVariant":
            return name, shape, variant.tuple_variant(variant.size_hint, _Elements())
        return name, shape, variant.struct_variant(("a",), _Entries())


class _Elements(Visitor):
    def visit_seq(self, seq):
        return list(seq.elements(u32))


class _Entries(Visitor):
    def visit_map(self, map):
        return dict(map.entries(identifier, u32))


_SAME_IDENTITY = [
    ([UnitVariant("E", 0, "V")], ("V", "UnitVariant", None), "V"),
    ([NewtypeVariant("E", 0, "V"), U32(1)], ("V", "NewtypeVariant", 1), {"V": 1}),
    ([TupleVariant("E", 0, "V", 2), U32(1), U32(2), TupleVariantEnd()],
     ("V", "TupleVariant", [1, 2]), {"V": [1, 2]}),
    ([StructVariant("E", 0, "V", 1), Field("a"), U32(1), StructVariantEnd()],
     ("V", "StructVariant", {"a": 1}), {"V": {"a": 1}}),
]


@pytest.mark.parametrize("tokens, typed, plain", _SAME_IDENTITY)
def test_same_variant_identity_routes_by_shape(tokens, typed, plain):
    d = TokenDecoder(tokens)
    assert d.decode(lambda dd: dd.decode_enum("E", ("V",), _ByShape())) == typed
    assert d.remaining() == 0

    d = TokenDecoder(tokens)
    assert d.decode(ValueVisitor.decode_from) == plain
    assert d.remaining() == 0


@pytest.mark.parametrize("raw, expected", [
    ("1", True), ("yes", True), ("ON", True), ("true", True),
    ("0", False), ("no", False), ("off", False), ("False", False),
])
def test_flag_spellings(monkeypatch, raw, expected):
    monkeypatch.setenv("TOKEN_ORACLE_SELF_DESCRIBING", raw)
    assert _dec().self_describing is expected


def test_flag_rejects_unknown_spelling(monkeypatch):
    monkeypatch.setenv("TOKEN_ORACLE_SELF_DESCRIBING", "maybe")
    with pytest.raises(ValueError):
        _dec()
