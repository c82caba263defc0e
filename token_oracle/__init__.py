"""token-oracle - token-level test oracle for encode/decode implementations."""

__version__ = "0.1.0"
__author__ = "YC Math"

# 주요 클래스들 export
from .models import (
    Token,
    TokenKind,
    Bool,
    I8, I16, I32, I64, I128,
    U8, U16, U32, U64, U128,
    F32, F64,
    Char,
    Str,
    Bytes,
    None_,
    Some,
    Unit,
    UnitStruct,
    UnitVariant,
    NewtypeStruct,
    NewtypeVariant,
    Seq, SeqEnd,
    Tuple, TupleEnd,
    TupleStruct, TupleStructEnd,
    TupleVariant, TupleVariantEnd,
    Map, MapEnd,
    Field,
    SkippedField,
    Struct, StructEnd,
    StructVariant, StructVariantEnd,
    Unordered,
)
from .tokens import Tokens
from .equivalence import tokens_equivalent
from .errors import (
    TokenDecodeError,
    TokenEncodeError,
    EndOfTokens,
    ExpectedToken,
    UnsupportedEnumDecoderMethod,
    NotSelfDescribing,
    Custom,
    InvalidType,
    InvalidValue,
    InvalidLength,
    UnknownVariant,
    UnknownField,
    MissingField,
    DuplicateField,
    TrailingTokens,
)
from .decoder import END, TokenDecoder
from .encoder import TokenEncoder
from .visitor import Visitor, IgnoredAny, ValueVisitor
from .assertions import assert_encodes, assert_decodes, assert_roundtrip

__all__ = [
    "Token", "TokenKind", "Tokens", "tokens_equivalent",
    "Bool", "I8", "I16", "I32", "I64", "I128",
    "U8", "U16", "U32", "U64", "U128", "F32", "F64",
    "Char", "Str", "Bytes", "None_", "Some", "Unit",
    "UnitStruct", "UnitVariant", "NewtypeStruct", "NewtypeVariant",
    "Seq", "SeqEnd", "Tuple", "TupleEnd", "TupleStruct", "TupleStructEnd",
    "TupleVariant", "TupleVariantEnd", "Map", "MapEnd", "Field", "SkippedField",
    "Struct", "StructEnd", "StructVariant", "StructVariantEnd", "Unordered",
    "TokenDecodeError", "TokenEncodeError", "EndOfTokens", "ExpectedToken",
    "UnsupportedEnumDecoderMethod", "NotSelfDescribing", "Custom",
    "InvalidType", "InvalidValue", "InvalidLength", "UnknownVariant",
    "UnknownField", "MissingField", "DuplicateField", "TrailingTokens",
    "END", "TokenDecoder", "TokenEncoder",
    "Visitor", "IgnoredAny", "ValueVisitor",
    "assert_encodes", "assert_decodes", "assert_roundtrip",
]
