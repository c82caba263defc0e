"""Assertion helpers for host test suites."""
from __future__ import annotations
from typing import Any, Iterable, Optional

from .decoder import Seed, TokenDecoder
from .encoder import TokenEncoder
from .models import Token
from .tokens import Tokens


def _render(tokens: Iterable[Token]) -> str:
    return "\n".join(f"    {t!r}" for t in tokens) or "    <empty>"


def _tokens_mismatch(expected, actual) -> str:
    return f"token mismatch\n  expected:\n{_render(expected)}\n  actual:\n{_render(actual)}"


def assert_encodes(value: Any, expected: Iterable[Token], *,
                   human_readable: Optional[bool] = None) -> Tokens:
    """Encode `value` and compare the trace with `expected` (Unordered aware)."""
    expected = Tokens(expected)
    actual = TokenEncoder(human_readable=human_readable).encode(value)
    if actual != expected:
        raise AssertionError(_tokens_mismatch(expected, actual))
    return actual


def assert_decodes(seed: Seed, tokens: Iterable[Token], expected: Any, **flags) -> Any:
    """Decode `tokens` with `seed`, require full consumption and `== expected`."""
    tokens = Tokens(tokens)
    value = TokenDecoder(tokens, **flags).decode(seed)
    if value != expected:
        raise AssertionError(
            f"decoded value mismatch\n  expected: {expected!r}\n  actual:   {value!r}\n"
            f"  from:\n{_render(tokens)}"
        )
    return value


def assert_roundtrip(value: Any, seed: Seed, **flags) -> Tokens:
    """Encode `value`, decode the trace back with `seed` and compare."""
    encoder_flags = {k: v for k, v in flags.items() if k == "human_readable"}
    tokens = TokenEncoder(**encoder_flags).encode(value)
    assert_decodes(seed, tokens, value, **flags)
    return tokens
