"""Token-sequence equivalence with position-independent (Unordered) groups.

Two sequences are walked in lockstep. Where one side holds an
``Unordered(group)`` token, the other side must contain, at that position, the
members of ``group`` laid out contiguously in some order. The search for that
order is breadth-first: a frontier of candidate states is advanced one
incoming token at a time, branching whenever a member completes.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Tuple

from .models import Token, TokenKind

# ── logger (silent by default) ─────────────────────────
LOGGER = logging.getLogger("token_oracle.equivalence")
LOGGER.addHandler(logging.NullHandler())

_NO_CONTEXT = -1

# candidate state: (member tokens, progress into member, unvisited members, enclosing context index)
_State = Tuple[Sequence[Token], int, Sequence[Sequence[Token]], int]


def is_unordered(token: Token) -> bool:
    return token.kind is TokenKind.UNORDERED


def is_vacuous(token: Token) -> bool:
    """True for an Unordered group that contributes no tokens at all."""
    return is_unordered(token) and all(
        all(is_vacuous(t) for t in member) for member in token.members
    )


def _skip_vacuous(tokens: Sequence[Token], pos: int) -> int:
    while pos < len(tokens) and is_vacuous(tokens[pos]):
        pos += 1
    return pos


class _GroupSearch:
    """Frontier of partial matches of one Unordered group against a stream."""

    def __init__(self, members):
        # suspended enclosing members of nested groups, addressed by index
        self._contexts: List[_State] = []
        self._frontier: List[_State] = []
        self._spare: List[_State] = []
        self.complete = False
        for state in self._split(members, _NO_CONTEXT):
            self._settle(state, self._frontier)

    @staticmethod
    def _split(members, parent: int):
        for i, member in enumerate(members):
            yield (member, 0, members[:i] + members[i + 1:], parent)

    def _settle(self, state: _State, out: List[_State]) -> None:
        """Bring `state` to a point where it expects a token, branching as needed."""
        member, pos, remaining, parent = state
        pos = _skip_vacuous(member, pos)
        if pos == len(member):
            if remaining:
                for branch in self._split(remaining, parent):
                    self._settle(branch, out)
            elif parent != _NO_CONTEXT:
                self._settle(self._contexts[parent], out)
            else:
                self.complete = True
            return
        out.append((member, pos, remaining, parent))
        token = member[pos]
        if is_unordered(token):
            # kept as-is above for a structural match; also expanded in place
            self._contexts.append((member, pos + 1, remaining, parent))
            for branch in self._split(token.members, len(self._contexts) - 1):
                self._settle(branch, out)

    def feed(self, token: Token) -> bool:
        """Advance every candidate expecting `token`. False once nothing survives."""
        self._spare.clear()
        for member, pos, remaining, parent in self._frontier:
            if member[pos] == token:
                self._settle((member, pos + 1, remaining, parent), self._spare)
        self._frontier, self._spare = self._spare, self._frontier
        return self.complete or bool(self._frontier)


def match_group(group: Token, stream: Sequence[Token], start: int) -> Optional[int]:
    """Match `group` against `stream[start:]`; return the position after it, or None."""
    search = _GroupSearch(group.members)
    pos = start
    while not search.complete:
        pos = _skip_vacuous(stream, pos)
        if pos == len(stream) or not search.feed(stream[pos]):
            return None
        pos += 1
    return pos


def tokens_equivalent(left: Sequence[Token], right: Sequence[Token]) -> bool:
    i = j = 0
    while True:
        i = _skip_vacuous(left, i)
        j = _skip_vacuous(right, j)
        if i == len(left) or j == len(right):
            if i == len(left) and j == len(right):
                return True
            LOGGER.debug("token count differs: left stops at %d/%d, right at %d/%d",
                         i, len(left), j, len(right))
            return False

        a, b = left[i], right[j]
        if is_unordered(a) and not is_unordered(b):
            end = match_group(a, right, j)
            if end is None:
                LOGGER.debug("unordered group at left[%d] not found in right from %d", i, j)
                return False
            i, j = i + 1, end
        elif is_unordered(b) and not is_unordered(a):
            end = match_group(b, left, i)
            if end is None:
                LOGGER.debug("unordered group at right[%d] not found in left from %d", j, i)
                return False
            i, j = end, j + 1
        else:
            if a != b:
                LOGGER.debug("mismatch at left[%d]=%r, right[%d]=%r", i, a, j, b)
                return False
            i, j = i + 1, j + 1
