"""Decoder engine: replays a token list through the visitor-callback protocol.

* Tokens are consumed front-to-back from a queue with a single pushback slot;
  container end detection peeks exactly one token ahead through that slot.
* ``SkippedField`` markers only record encoder-side omissions and are dropped
  before every read.
* Containers are iterated through cursors bound to their end marker. Once the
  visitor returns, the end marker must be the next token (``ExpectedToken``
  otherwise).
"""
from __future__ import annotations
import logging
from collections import deque
from typing import Any, Callable, Deque, Iterable, Iterator, Optional, Sequence, Tuple

from .config import resolve_flag
from .errors import (
    EndOfTokens,
    ExpectedToken,
    InvalidLength,
    InvalidType,
    InvalidValue,
    NotSelfDescribing,
    TrailingTokens,
    UnsupportedEnumDecoderMethod,
)
from .models import (
    MapEnd,
    SeqEnd,
    StructEnd,
    StructVariantEnd,
    Token,
    TokenKind,
    TupleEnd,
    TupleStructEnd,
    TupleVariantEnd,
    VARIANT_KINDS,
    describe_unexpected,
)

# ── logger (silent by default) ─────────────────────────
LOGGER = logging.getLogger("token_oracle.decoder")
LOGGER.addHandler(logging.NullHandler())

# seed: callable(decoder) -> value, e.g. MyType.decode_from
Seed = Callable[[Any], Any]


class _End:
    def __repr__(self):
        return "END"


END = _End()
"""Returned by cursors once their container is exhausted."""

_SCALAR_CALLBACKS = {
    TokenKind.BOOL: "visit_bool",
    TokenKind.I8: "visit_i8",
    TokenKind.I16: "visit_i16",
    TokenKind.I32: "visit_i32",
    TokenKind.I64: "visit_i64",
    TokenKind.I128: "visit_i128",
    TokenKind.U8: "visit_u8",
    TokenKind.U16: "visit_u16",
    TokenKind.U32: "visit_u32",
    TokenKind.U64: "visit_u64",
    TokenKind.U128: "visit_u128",
    TokenKind.F32: "visit_f32",
    TokenKind.F64: "visit_f64",
    TokenKind.CHAR: "visit_char",
    TokenKind.STR: "visit_str",
    TokenKind.BYTES: "visit_bytes",
}


class TokenDecoder:
    """Decodes values from a fixed list of tokens.

    Args:
        tokens: decoder input, consumed destructively
        human_readable: reported to decoding values; default from config
        self_describing: when False, ``decode_any``/``decode_ignored_any`` fail
            with ``NotSelfDescribing``; default from config
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        *,
        human_readable: Optional[bool] = None,
        self_describing: Optional[bool] = None,
    ):
        self._tokens: Deque[Token] = deque(tokens)
        self._revisited: Optional[Token] = None
        self._human_readable = resolve_flag("human_readable", human_readable)
        self._self_describing = resolve_flag("self_describing", self_describing)

    @property
    def human_readable(self) -> bool:
        return self._human_readable

    @property
    def self_describing(self) -> bool:
        return self._self_describing

    def remaining(self) -> int:
        """Unconsumed tokens, the pushed-back one included."""
        return len(self._tokens) + (self._revisited is not None)

    def decode(self, seed: Seed) -> Any:
        """Run `seed` and require that it consumed every token."""
        value = seed(self)
        left = self.remaining()
        if left:
            raise TrailingTokens(left)
        return value

    # ------------------------------------------------------------------
    # token queue
    # ------------------------------------------------------------------
    def _next_token(self) -> Token:
        while True:
            if self._revisited is not None:
                token, self._revisited = self._revisited, None
            elif self._tokens:
                token = self._tokens.popleft()
            else:
                raise EndOfTokens()
            if token.kind is not TokenKind.SKIPPED_FIELD:
                return token

    def _revisit(self, token: Token) -> None:
        if self._revisited is not None:
            raise RuntimeError("only one token can be pushed back at a time")
        self._revisited = token

    # ------------------------------------------------------------------
    # typed operations
    # ------------------------------------------------------------------
    def _scalar(self, kind: TokenKind, visitor) -> Any:
        token = self._next_token()
        if token.kind is not kind:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        return getattr(visitor, _SCALAR_CALLBACKS[kind])(token.value)

    def decode_bool(self, visitor):
        return self._scalar(TokenKind.BOOL, visitor)

    def decode_i8(self, visitor):
        return self._scalar(TokenKind.I8, visitor)

    def decode_i16(self, visitor):
        return self._scalar(TokenKind.I16, visitor)

    def decode_i32(self, visitor):
        return self._scalar(TokenKind.I32, visitor)

    def decode_i64(self, visitor):
        return self._scalar(TokenKind.I64, visitor)

    def decode_i128(self, visitor):
        return self._scalar(TokenKind.I128, visitor)

    def decode_u8(self, visitor):
        return self._scalar(TokenKind.U8, visitor)

    def decode_u16(self, visitor):
        return self._scalar(TokenKind.U16, visitor)

    def decode_u32(self, visitor):
        return self._scalar(TokenKind.U32, visitor)

    def decode_u64(self, visitor):
        return self._scalar(TokenKind.U64, visitor)

    def decode_u128(self, visitor):
        return self._scalar(TokenKind.U128, visitor)

    def decode_f32(self, visitor):
        return self._scalar(TokenKind.F32, visitor)

    def decode_f64(self, visitor):
        return self._scalar(TokenKind.F64, visitor)

    def decode_char(self, visitor):
        return self._scalar(TokenKind.CHAR, visitor)

    def decode_str(self, visitor):
        return self._scalar(TokenKind.STR, visitor)

    def decode_bytes(self, visitor):
        return self._scalar(TokenKind.BYTES, visitor)

    def decode_option(self, visitor):
        token = self._next_token()
        if token.kind is TokenKind.SOME:
            return visitor.visit_some(self)
        if token.kind is TokenKind.NONE:
            return visitor.visit_none()
        raise InvalidType(describe_unexpected(token), visitor.expecting())

    def decode_unit(self, visitor):
        token = self._next_token()
        if token.kind is not TokenKind.UNIT:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        return visitor.visit_unit()

    def decode_unit_struct(self, name: str, visitor):
        self._named(TokenKind.UNIT_STRUCT, name, visitor)
        return visitor.visit_unit()

    def decode_newtype_struct(self, name: str, visitor):
        self._named(TokenKind.NEWTYPE_STRUCT, name, visitor)
        return visitor.visit_newtype_struct(self)

    def decode_seq(self, visitor):
        token = self._next_token()
        if token.kind is not TokenKind.SEQ:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        return self._visit_seq(visitor, token.len, SeqEnd())

    def decode_tuple(self, length: int, visitor):
        token = self._next_token()
        if token.kind is not TokenKind.TUPLE:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        if token.len != length:
            raise InvalidLength(token.len, visitor.expecting())
        return self._visit_seq(visitor, length, TupleEnd())

    def decode_tuple_struct(self, name: str, length: int, visitor):
        token = self._named(TokenKind.TUPLE_STRUCT, name, visitor)
        if token.len != length:
            raise InvalidLength(token.len, visitor.expecting())
        return self._visit_seq(visitor, length, TupleStructEnd())

    def decode_map(self, visitor):
        token = self._next_token()
        if token.kind is not TokenKind.MAP:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        return self._visit_map(visitor, token.len, MapEnd())

    def decode_struct(self, name: str, fields: Sequence[str], visitor):
        token = self._next_token()
        if token.kind is TokenKind.STRUCT:
            if token.name != name:
                raise InvalidValue(describe_unexpected(token), visitor.expecting())
            return self._visit_map(visitor, token.len, StructEnd())
        if token.kind is TokenKind.SEQ:
            # compact structs: field values in declaration order
            return self._visit_seq(visitor, token.len, SeqEnd())
        raise InvalidType(describe_unexpected(token), visitor.expecting())

    def decode_enum(self, name: str, variants: Sequence[str], visitor):
        token = self._next_token()
        if token.kind not in VARIANT_KINDS:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        if token.name != name:
            raise InvalidValue(describe_unexpected(token), visitor.expecting())
        # EnumAccess consumes the variant token again
        self._revisit(token)
        return visitor.visit_enum(EnumAccess(self))

    def decode_identifier(self, visitor):
        token = self._next_token()
        if token.kind is TokenKind.STR:
            return visitor.visit_str(token.value)
        if token.kind is TokenKind.FIELD:
            return visitor.visit_str(token.name)
        raise InvalidType(describe_unexpected(token), visitor.expecting())

    def decode_any(self, visitor):
        if not self._self_describing:
            raise NotSelfDescribing()
        token = self._next_token()
        kind = token.kind

        callback = _SCALAR_CALLBACKS.get(kind)
        if callback is not None:
            return getattr(visitor, callback)(token.value)
        if kind is TokenKind.NONE:
            return visitor.visit_none()
        if kind is TokenKind.SOME:
            return visitor.visit_some(self)
        if kind in (TokenKind.UNIT, TokenKind.UNIT_STRUCT):
            return visitor.visit_unit()
        if kind in VARIANT_KINDS:
            self._revisit(token)
            return visitor.visit_enum(EnumAccess(self))
        if kind is TokenKind.NEWTYPE_STRUCT:
            return visitor.visit_newtype_struct(self)
        if kind is TokenKind.SEQ:
            return self._visit_seq(visitor, token.len, SeqEnd())
        if kind is TokenKind.TUPLE:
            return self._visit_seq(visitor, token.len, TupleEnd())
        if kind is TokenKind.TUPLE_STRUCT:
            return self._visit_seq(visitor, token.len, TupleStructEnd())
        if kind is TokenKind.MAP:
            return self._visit_map(visitor, token.len, MapEnd())
        if kind is TokenKind.STRUCT:
            return self._visit_map(visitor, token.len, StructEnd())
        if kind is TokenKind.FIELD:
            return visitor.visit_str(token.name)
        raise InvalidType(describe_unexpected(token), visitor.expecting())

    def decode_ignored_any(self, visitor):
        return self.decode_any(visitor)

    # ------------------------------------------------------------------
    def _named(self, kind: TokenKind, name: str, visitor) -> Token:
        token = self._next_token()
        if token.kind is not kind:
            raise InvalidType(describe_unexpected(token), visitor.expecting())
        if token.name != name:
            raise InvalidValue(describe_unexpected(token), visitor.expecting())
        return token

    def _visit_seq(self, visitor, length: Optional[int], end: Token):
        cursor = SeqCursor(self, length, end)
        value = visitor.visit_seq(cursor)
        cursor._finish()
        return value

    def _visit_map(self, visitor, length: Optional[int], end: Token):
        cursor = MapCursor(self, length, end)
        value = visitor.visit_map(cursor)
        cursor._finish()
        return value


# ---------------------------------------------------------------------------
# Cursors
# ---------------------------------------------------------------------------
class _Cursor:
    def __init__(self, decoder: TokenDecoder, length: Optional[int], end: Token):
        self._decoder = decoder
        self._len = length
        self._end = end
        self._exhausted = False

    @property
    def size_hint(self) -> Optional[int]:
        """Declared length, if any. Never enforced."""
        return self._len

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def _at_end(self) -> bool:
        if self._exhausted:
            return True
        token = self._decoder._next_token()
        if token == self._end:
            self._exhausted = True
            return True
        self._decoder._revisit(token)
        return False

    def _finish(self) -> None:
        if self._exhausted:
            return
        token = self._decoder._next_token()
        if token != self._end:
            LOGGER.debug("container closed by %s, expected %s", token, self._end)
            raise ExpectedToken(self._end)
        self._exhausted = True


class SeqCursor(_Cursor):
    """Element cursor over a sequence, tuple, tuple struct or tuple variant."""

    def next_element(self, seed: Seed) -> Any:
        if self._at_end():
            return END
        return seed(self._decoder)

    def elements(self, seed: Seed) -> Iterator[Any]:
        while True:
            value = self.next_element(seed)
            if value is END:
                return
            yield value


class MapCursor(_Cursor):
    """Key/value cursor over a map, struct or struct variant."""

    def next_key(self, seed: Seed) -> Any:
        if self._at_end():
            return END
        return seed(self._decoder)

    def next_value(self, seed: Seed) -> Any:
        return seed(self._decoder)

    def next_entry(self, key_seed: Seed, value_seed: Seed) -> Any:
        key = self.next_key(key_seed)
        if key is END:
            return END
        return key, self.next_value(value_seed)

    def entries(self, key_seed: Seed, value_seed: Seed) -> Iterator[Tuple[Any, Any]]:
        while True:
            entry = self.next_entry(key_seed, value_seed)
            if entry is END:
                return
            yield entry


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class EnumAccess:
    """Variant selection: first the variant identity, then its payload."""

    def __init__(self, decoder: TokenDecoder):
        self._decoder = decoder

    def variant(self, seed: Seed) -> Tuple[Any, "VariantAccess"]:
        token = self._decoder._next_token()
        value = seed(EnumDecoder(token, self._decoder.human_readable))
        return value, VariantAccess(self._decoder, token)


class EnumDecoder:
    """Restricted view exposing only a variant's name or index.

    String-like reads see the variant name, integer reads of any width the
    variant index; every other operation raises ``UnsupportedEnumDecoderMethod``.
    """

    def __init__(self, token: Token, human_readable: bool):
        self._token = token
        self._human_readable = human_readable

    @property
    def human_readable(self) -> bool:
        return self._human_readable

    def decode_any(self, visitor):
        return visitor.visit_str(self._token.variant)

    decode_str = decode_identifier = decode_ignored_any = decode_any

    def decode_u32(self, visitor):
        return visitor.visit_u32(self._token.variant_index)

    decode_i8 = decode_i16 = decode_i32 = decode_i64 = decode_i128 = decode_u32
    decode_u8 = decode_u16 = decode_u64 = decode_u128 = decode_u32

    def _unsupported(self, *args, **kwargs):
        raise UnsupportedEnumDecoderMethod()

    decode_bool = decode_f32 = decode_f64 = decode_char = decode_bytes = _unsupported
    decode_option = decode_unit = decode_unit_struct = decode_newtype_struct = _unsupported
    decode_seq = decode_tuple = decode_tuple_struct = decode_map = _unsupported
    decode_struct = decode_enum = _unsupported


class VariantAccess:
    """Payload access for the selected variant.

    The requested payload shape must match the variant token: ``unit_variant``
    for ``UnitVariant``, ``newtype_variant`` for ``NewtypeVariant`` and so on.
    """

    def __init__(self, decoder: TokenDecoder, token: Token):
        self._decoder = decoder
        self._token = token

    @property
    def shape(self) -> TokenKind:
        return self._token.kind

    @property
    def size_hint(self) -> Optional[int]:
        return self._token.len

    def _require(self, kind: TokenKind, wanted: str) -> None:
        if self._token.kind is not kind:
            raise InvalidType(describe_unexpected(self._token), wanted)

    def unit_variant(self) -> None:
        self._require(TokenKind.UNIT_VARIANT, "unit variant")

    def newtype_variant(self, seed: Seed) -> Any:
        self._require(TokenKind.NEWTYPE_VARIANT, "newtype variant")
        return seed(self._decoder)

    def tuple_variant(self, length: Optional[int], visitor) -> Any:
        self._require(TokenKind.TUPLE_VARIANT, "tuple variant")
        return self._decoder._visit_seq(visitor, length, TupleVariantEnd())

    def struct_variant(self, fields: Sequence[str], visitor) -> Any:
        self._require(TokenKind.STRUCT_VARIANT, "struct variant")
        return self._decoder._visit_map(visitor, self._token.len, StructVariantEnd())
