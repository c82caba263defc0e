"""Encoder engine: records every encoding call as tokens.

Scalar operations return a one-token :class:`Tokens`; container operations
return an accumulator seeded with the opening marker whose ``end()`` appends
the matching end marker. :meth:`TokenEncoder.encode` encodes arbitrary
sub-values (builtins, numpy scalars, objects with ``encode_to``).
"""
from __future__ import annotations
import logging
from typing import Any, List, Optional

import numpy as np

from .config import resolve_flag
from .errors import TokenEncodeError
from .models import (
    Bool, Bytes, Char, F32, F64, Field, I8, I16, I32, I64, I128,
    Map, MapEnd, NewtypeStruct, NewtypeVariant, None_, Seq, SeqEnd,
    SkippedField, Some, Str, Struct, StructEnd, StructVariant, StructVariantEnd,
    Token, TokenKind, Tuple, TupleEnd, TupleStruct, TupleStructEnd,
    TupleVariant, TupleVariantEnd, U8, U16, U32, U64, U128,
    Unit, UnitStruct, UnitVariant, int_fits,
)
from .tokens import Tokens

# ── logger (silent by default) ─────────────────────────
LOGGER = logging.getLogger("token_oracle.encoder")
LOGGER.addHandler(logging.NullHandler())

# numpy scalar dtype → token factory
_NUMPY_FACTORIES = {
    np.dtype(np.int8): I8,
    np.dtype(np.int16): I16,
    np.dtype(np.int32): I32,
    np.dtype(np.int64): I64,
    np.dtype(np.uint8): U8,
    np.dtype(np.uint16): U16,
    np.dtype(np.uint32): U32,
    np.dtype(np.uint64): U64,
    np.dtype(np.float16): F32,
    np.dtype(np.float32): F32,
    np.dtype(np.float64): F64,
}

# python int widths tried in order
_INT_WIDTHS = (
    (TokenKind.I64, I64),
    (TokenKind.U64, U64),
    (TokenKind.I128, I128),
    (TokenKind.U128, U128),
)


def _as_tokens(result) -> Tokens:
    if isinstance(result, Tokens):
        return result
    if isinstance(result, Token):
        return Tokens([result])
    if isinstance(result, (list, tuple)):
        return Tokens(result)
    raise TokenEncodeError.custom(
        f"encode_to must return Tokens, got {type(result).__name__}"
    )


class TokenEncoder:
    def __init__(self, *, human_readable: Optional[bool] = None):
        self._human_readable = resolve_flag("human_readable", human_readable)

    @property
    def human_readable(self) -> bool:
        return self._human_readable

    # ── scalars ────────────────────────────────────────
    def encode_bool(self, v) -> Tokens:
        return Tokens([Bool(v)])

    def encode_i8(self, v) -> Tokens:
        return Tokens([I8(v)])

    def encode_i16(self, v) -> Tokens:
        return Tokens([I16(v)])

    def encode_i32(self, v) -> Tokens:
        return Tokens([I32(v)])

    def encode_i64(self, v) -> Tokens:
        return Tokens([I64(v)])

    def encode_i128(self, v) -> Tokens:
        return Tokens([I128(v)])

    def encode_u8(self, v) -> Tokens:
        return Tokens([U8(v)])

    def encode_u16(self, v) -> Tokens:
        return Tokens([U16(v)])

    def encode_u32(self, v) -> Tokens:
        return Tokens([U32(v)])

    def encode_u64(self, v) -> Tokens:
        return Tokens([U64(v)])

    def encode_u128(self, v) -> Tokens:
        return Tokens([U128(v)])

    def encode_f32(self, v) -> Tokens:
        return Tokens([F32(v)])

    def encode_f64(self, v) -> Tokens:
        return Tokens([F64(v)])

    def encode_char(self, v) -> Tokens:
        return Tokens([Char(v)])

    def encode_str(self, v) -> Tokens:
        return Tokens([Str(v)])

    def encode_bytes(self, v) -> Tokens:
        return Tokens([Bytes(v)])

    def encode_none(self) -> Tokens:
        return Tokens([None_()])

    def encode_unit(self) -> Tokens:
        return Tokens([Unit()])

    def encode_unit_struct(self, name: str) -> Tokens:
        return Tokens([UnitStruct(name)])

    def encode_unit_variant(self, name: str, variant_index: int, variant: str) -> Tokens:
        return Tokens([UnitVariant(name, variant_index, variant)])

    # ── wrappers ───────────────────────────────────────
    def encode_some(self, value) -> Tokens:
        return Tokens([Some()]) + self.encode(value)

    def encode_newtype_struct(self, name: str, value) -> Tokens:
        return Tokens([NewtypeStruct(name)]) + self.encode(value)

    def encode_newtype_variant(self, name: str, variant_index: int, variant: str, value) -> Tokens:
        return Tokens([NewtypeVariant(name, variant_index, variant)]) + self.encode(value)

    # ── containers ─────────────────────────────────────
    def encode_seq(self, len: Optional[int] = None) -> "SeqEncoder":
        return SeqEncoder(self, Seq(len), SeqEnd())

    def encode_tuple(self, len: int) -> "SeqEncoder":
        return SeqEncoder(self, Tuple(len), TupleEnd())

    def encode_tuple_struct(self, name: str, len: int) -> "SeqEncoder":
        return SeqEncoder(self, TupleStruct(name, len), TupleStructEnd())

    def encode_tuple_variant(self, name: str, variant_index: int, variant: str, len: int) -> "SeqEncoder":
        return SeqEncoder(self, TupleVariant(name, variant_index, variant, len), TupleVariantEnd())

    def encode_map(self, len: Optional[int] = None) -> "MapEncoder":
        return MapEncoder(self, Map(len), MapEnd())

    def encode_struct(self, name: str, len: int) -> "StructEncoder":
        return StructEncoder(self, Struct(name, len), StructEnd())

    def encode_struct_variant(self, name: str, variant_index: int, variant: str, len: int) -> "StructEncoder":
        return StructEncoder(self, StructVariant(name, variant_index, variant, len), StructVariantEnd())

    # ------------------------------------------------------------------
    def encode(self, value: Any) -> Tokens:
        """Encode any supported value.

        Dispatch order: ``encode_to`` method, bool, numpy scalar, int, float,
        str, bytes-like, None, dict, tuple, list/set/frozenset, callable.
        """
        encode_to = getattr(value, "encode_to", None)
        if encode_to is not None and not isinstance(value, type):
            return _as_tokens(encode_to(self))

        if isinstance(value, (bool, np.bool_)):
            return self.encode_bool(bool(value))
        if isinstance(value, (np.integer, np.floating)):
            factory = _NUMPY_FACTORIES.get(value.dtype)
            if factory is None:
                raise TokenEncodeError.custom(f"unsupported numpy scalar type {value.dtype}")
            return Tokens([factory(value.item())])
        if isinstance(value, int):
            for kind, factory in _INT_WIDTHS:
                if int_fits(kind, value):
                    return Tokens([factory(value)])
            raise TokenEncodeError.custom(f"integer {value} does not fit in 128 bits")
        if isinstance(value, float):
            return self.encode_f64(value)
        if isinstance(value, str):
            return self.encode_str(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.encode_bytes(value)
        if value is None:
            return self.encode_none()

        if isinstance(value, dict):
            m = self.encode_map(len(value))
            for k, v in value.items():
                m.entry(k, v)
            return m.end()
        if isinstance(value, tuple):
            t = self.encode_tuple(len(value))
            for item in value:
                t.element(item)
            return t.end()
        if isinstance(value, (list, set, frozenset)):
            s = self.encode_seq(len(value))
            for item in value:
                s.element(item)
            return s.end()

        if callable(value):
            return _as_tokens(value(self))
        raise TokenEncodeError.custom(f"cannot encode value of type {type(value).__name__}")


# ---------------------------------------------------------------------------
# Compound accumulators
# ---------------------------------------------------------------------------
class _Compound:
    def __init__(self, encoder: TokenEncoder, opening: Token, end: Token):
        self._encoder = encoder
        self._tokens: List[Token] = [opening]
        self._end = end
        self._ended = False

    def _check_open(self) -> None:
        if self._ended:
            raise TokenEncodeError.custom(f"{self._tokens[0].kind.value} accumulator already ended")

    def _push(self, value) -> None:
        self._tokens.extend(self._encoder.encode(value))

    def end(self) -> Tokens:
        self._check_open()
        self._ended = True
        self._tokens.append(self._end)
        LOGGER.debug("%s closed with %d tokens", self._tokens[0].kind.value, len(self._tokens))
        return Tokens(self._tokens)


class SeqEncoder(_Compound):
    """Accumulates a sequence, tuple, tuple struct or tuple variant."""

    def element(self, value) -> "SeqEncoder":
        self._check_open()
        self._push(value)
        return self


class MapEncoder(_Compound):
    """Accumulates map entries; every key must be followed by its value."""

    def __init__(self, encoder: TokenEncoder, opening: Token, end: Token):
        super().__init__(encoder, opening, end)
        self._key_pending = False

    def key(self, k) -> "MapEncoder":
        self._check_open()
        if self._key_pending:
            raise TokenEncodeError.custom("map key encoded twice without a value")
        self._push(k)
        self._key_pending = True
        return self

    def value(self, v) -> "MapEncoder":
        self._check_open()
        if not self._key_pending:
            raise TokenEncodeError.custom("map value encoded without a key")
        self._push(v)
        self._key_pending = False
        return self

    def entry(self, k, v) -> "MapEncoder":
        return self.key(k).value(v)

    def end(self) -> Tokens:
        if self._key_pending and not self._ended:
            raise TokenEncodeError.custom("map ended with a dangling key")
        return super().end()


class StructEncoder(_Compound):
    """Accumulates named fields of a struct or struct variant."""

    def field(self, name: str, value) -> "StructEncoder":
        self._check_open()
        self._tokens.append(Field(name))
        self._push(value)
        return self

    def skip_field(self, name: str) -> "StructEncoder":
        self._check_open()
        self._tokens.append(SkippedField(name))
        return self
