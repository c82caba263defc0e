from __future__ import annotations
from typing import Iterable, Iterator, Union, overload

from .equivalence import tokens_equivalent
from .models import Token


class Tokens:
    """Immutable, ordered list of :class:`Token`.

    Produced by :class:`~token_oracle.encoder.TokenEncoder` or written by hand as
    decoder input. ``==`` against another ``Tokens`` or a list/tuple of tokens
    uses :func:`~token_oracle.equivalence.tokens_equivalent`, so expected
    fixtures may contain ``Unordered`` groups.
    """

    __slots__ = ("_tokens",)

    def __init__(self, tokens: Iterable[Token] = ()):
        items = tuple(tokens)
        for token in items:
            if not isinstance(token, Token):
                raise TypeError(f"Tokens holds Token values only, got {token!r}")
        self._tokens = items

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    @overload
    def __getitem__(self, index: int) -> Token: ...
    @overload
    def __getitem__(self, index: slice) -> "Tokens": ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return Tokens(self._tokens[index])
        return self._tokens[index]

    def __add__(self, other) -> "Tokens":
        if isinstance(other, Tokens):
            return Tokens(self._tokens + other._tokens)
        if isinstance(other, (list, tuple)):
            return Tokens(self._tokens + tuple(other))
        return NotImplemented

    def __eq__(self, other):
        if isinstance(other, Tokens):
            return tokens_equivalent(self._tokens, other._tokens)
        if isinstance(other, (list, tuple)) and all(isinstance(t, Token) for t in other):
            return tokens_equivalent(self._tokens, other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self):
        return f"Tokens([{', '.join(repr(t) for t in self._tokens)}])"
