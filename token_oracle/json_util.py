"""JSON form of token traces (externally tagged).

``"SeqEnd"`` for payload-free tokens, ``{"Tag": payload}`` otherwise::

    [{"Seq": {"len": null}}, {"U32": 1}, "SeqEnd"]

128-bit integers travel as decimal strings, byte strings as integer lists.
"""
from __future__ import annotations
from typing import Any, Iterable, List

import orjson

from .models import (
    FACTORIES, PAYLOAD_FIELDS, UNIT_KINDS, Token, TokenKind, Unordered,
)
from .tokens import Tokens

_BIG_INT_KINDS = (TokenKind.I128, TokenKind.U128)


def dumps(o, *, pretty: bool = False) -> str:
    option = orjson.OPT_NON_STR_KEYS | orjson.OPT_SERIALIZE_NUMPY
    if pretty:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(o, option=option).decode()


JSONDecodeError = orjson.JSONDecodeError


def loads(s):
    return orjson.loads(s)


def token_to_json(token: Token) -> Any:
    kind = token.kind
    if kind in UNIT_KINDS:
        return kind.value
    if kind is TokenKind.UNORDERED:
        return {kind.value: [[token_to_json(t) for t in member] for member in token.members]}
    if kind in (TokenKind.FIELD, TokenKind.SKIPPED_FIELD):
        return {kind.value: token.name}
    fields = PAYLOAD_FIELDS.get(kind)
    if fields is not None:
        return {kind.value: {f: getattr(token, f) for f in fields}}
    value = token.value
    if kind in _BIG_INT_KINDS:
        value = str(value)
    elif kind is TokenKind.BYTES:
        value = list(value)
    return {kind.value: value}


def token_from_json(data: Any) -> Token:
    if isinstance(data, str):
        kind = _kind(data)
        if kind not in UNIT_KINDS:
            raise ValueError(f"token {data} needs a payload")
        return FACTORIES[kind]()
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"malformed token: {data!r}")
    (tag, payload), = data.items()
    kind = _kind(tag)
    if kind is TokenKind.UNORDERED:
        return Unordered([[token_from_json(t) for t in member] for member in payload])
    if kind in (TokenKind.FIELD, TokenKind.SKIPPED_FIELD):
        return FACTORIES[kind](payload)
    fields = PAYLOAD_FIELDS.get(kind)
    if fields is not None:
        if not isinstance(payload, dict):
            raise ValueError(f"{tag} payload must be an object with {', '.join(fields)}")
        missing = [f for f in fields if f not in payload]
        if missing:
            raise ValueError(f"{tag} payload is missing {', '.join(missing)}")
        return FACTORIES[kind](**{f: payload[f] for f in fields})
    if kind in _BIG_INT_KINDS:
        payload = int(payload)
    elif kind is TokenKind.BYTES:
        payload = bytes(payload)
    return FACTORIES[kind](payload)


def _kind(tag: str) -> TokenKind:
    try:
        return TokenKind(tag)
    except ValueError:
        raise ValueError(f"unknown token tag {tag!r}") from None


def tokens_to_json(tokens: Iterable[Token]) -> List[Any]:
    return [token_to_json(t) for t in tokens]


def tokens_from_json(data: Iterable[Any]) -> Tokens:
    return Tokens(token_from_json(item) for item in data)
