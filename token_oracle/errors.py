"""Decode / encode error kinds.

Every decode failure is a :class:`TokenDecodeError`; the concrete subclass is
the error kind and ``str(err)`` the fixed message. Errors compare equal by kind
and message so tests can assert on them directly::

    with pytest.raises(ExpectedToken) as info:
        ...
    assert info.value == ExpectedToken(SeqEnd())
"""
from __future__ import annotations
from typing import Any, Sequence


def _expected_text(expected: Any) -> str:
    # visitors describe themselves through expecting()
    expecting = getattr(expected, "expecting", None)
    if callable(expecting):
        return expecting()
    return str(expected)


def _one_of(names: Sequence[str]) -> str:
    return "[" + ", ".join(f'"{n}"' for n in names) + "]"


class TokenDecodeError(RuntimeError):
    """Raised when a token stream cannot be decoded into the requested shape."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __eq__(self, other):
        if not isinstance(other, TokenDecodeError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self):
        return hash((type(self), self.message))

    # ── constructors used by decoding values ───────────────
    @staticmethod
    def custom(msg: Any) -> "Custom":
        return Custom(str(msg))

    @staticmethod
    def invalid_type(unexpected: str, expected: Any) -> "InvalidType":
        return InvalidType(unexpected, _expected_text(expected))

    @staticmethod
    def invalid_value(unexpected: str, expected: Any) -> "InvalidValue":
        return InvalidValue(unexpected, _expected_text(expected))

    @staticmethod
    def invalid_length(length: int, expected: Any) -> "InvalidLength":
        return InvalidLength(length, _expected_text(expected))

    @staticmethod
    def unknown_variant(variant: str, expected: Sequence[str]) -> "UnknownVariant":
        return UnknownVariant(variant, expected)

    @staticmethod
    def unknown_field(field: str, expected: Sequence[str]) -> "UnknownField":
        return UnknownField(field, expected)

    @staticmethod
    def missing_field(field: str) -> "MissingField":
        return MissingField(field)

    @staticmethod
    def duplicate_field(field: str) -> "DuplicateField":
        return DuplicateField(field)


class EndOfTokens(TokenDecodeError):
    def __init__(self):
        super().__init__("end of tokens")


class ExpectedToken(TokenDecodeError):
    """A container was not closed by its end marker."""

    def __init__(self, token):
        self.token = token
        super().__init__(f"expected token {token}")


class UnsupportedEnumDecoderMethod(TokenDecodeError):
    """Only identifier/string/integer reads are allowed while selecting a variant."""

    def __init__(self):
        super().__init__("use of unsupported enum decoder method")


class NotSelfDescribing(TokenDecodeError):
    def __init__(self):
        super().__init__(
            "attempted to decode as self-describing when decoder is not set as self-describing"
        )


class Custom(TokenDecodeError):
    pass


class InvalidType(TokenDecodeError):
    def __init__(self, unexpected: str, expected: str):
        self.unexpected, self.expected = unexpected, expected
        super().__init__(f"invalid type: expected {expected}, found {unexpected}")


class InvalidValue(TokenDecodeError):
    def __init__(self, unexpected: str, expected: str):
        self.unexpected, self.expected = unexpected, expected
        super().__init__(f"invalid value: expected {expected}, found {unexpected}")


class InvalidLength(TokenDecodeError):
    def __init__(self, length: int, expected: str):
        self.length, self.expected = length, expected
        super().__init__(f"invalid length {length}, expected {expected}")


class UnknownVariant(TokenDecodeError):
    def __init__(self, variant: str, expected: Sequence[str]):
        self.variant, self.expected = variant, tuple(expected)
        super().__init__(f"unknown variant {variant}, expected one of {_one_of(expected)}")


class UnknownField(TokenDecodeError):
    def __init__(self, field: str, expected: Sequence[str]):
        self.field, self.expected = field, tuple(expected)
        super().__init__(f"unknown field {field}, expected one of {_one_of(expected)}")


class MissingField(TokenDecodeError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"missing field {field}")


class DuplicateField(TokenDecodeError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"duplicate field {field}")


class TrailingTokens(TokenDecodeError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"{count} trailing tokens after decoding")


# ---------------------------------------------------------------------------
class TokenEncodeError(RuntimeError):
    """Raised when a value's own encode logic reports a problem."""

    @classmethod
    def custom(cls, msg: Any) -> "TokenEncodeError":
        return cls(str(msg))
