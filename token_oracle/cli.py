"""Command-line interface: **token-oracle encode / decode / compare**"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .decoder import TokenDecoder
from .encoder import TokenEncoder
from .errors import TokenDecodeError, TokenEncodeError
from .json_util import JSONDecodeError, dumps, loads, tokens_from_json, tokens_to_json
from .visitor import ValueVisitor

# -----------------------------------------------------------------------------
# Helper I/O
# -----------------------------------------------------------------------------

_JSON_INT_MIN, _JSON_INT_MAX = -(1 << 63), (1 << 64) - 1

# unreadable or malformed trace files
_BAD_INPUT = (OSError, JSONDecodeError, ValueError, TypeError)


def _load_json(path: Path):
    return loads(path.read_bytes())


def _dump_json(obj, path: Path, pretty: bool = True):
    path.write_text(dumps(obj, pretty=pretty), encoding="utf-8")


def _plain(value):
    # decoded values may hold bytes, tuple keys or 128-bit ints that JSON cannot carry
    if isinstance(value, bytes):
        return list(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value if _JSON_INT_MIN <= value <= _JSON_INT_MAX else str(value)
    if isinstance(value, dict):
        return {_plain_key(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _plain_key(key):
    key = _plain(key)
    if isinstance(key, (str, int, float, bool)):
        return key
    return dumps(key)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def cmd_encode(ns) -> int:
    try:
        data = _load_json(ns.input)
    except _BAD_INPUT as exc:
        print(f"❌ cannot read {ns.input}: {exc}", file=sys.stderr)
        return 1

    t0 = time.perf_counter()
    try:
        tokens = TokenEncoder().encode(data)
    except TokenEncodeError as exc:
        print(f"❌ encode failed: {exc}", file=sys.stderr)
        return 1
    enc_ms = (time.perf_counter() - t0) * 1000

    _dump_json(tokens_to_json(tokens), ns.output, pretty=not ns.compact)
    print(f"✓ encoded {len(tokens)} tokens in {enc_ms:.2f} ms → {ns.output}")
    return 0


def cmd_decode(ns) -> int:
    try:
        tokens = tokens_from_json(_load_json(ns.input))
    except _BAD_INPUT as exc:
        print(f"❌ cannot read trace {ns.input}: {exc}", file=sys.stderr)
        return 1
    dec = TokenDecoder(tokens, self_describing=not ns.not_self_describing)

    t0 = time.perf_counter()
    try:
        data = dec.decode(ValueVisitor.decode_from)
    except TokenDecodeError as exc:
        print(f"❌ decode failed: {exc}", file=sys.stderr)
        return 1
    dec_ms = (time.perf_counter() - t0) * 1000

    _dump_json(_plain(data), ns.output)
    print(f"✓ decoded {len(tokens)} tokens in {dec_ms:.2f} ms → {ns.output}")
    return 0


def cmd_compare(ns) -> int:
    traces = []
    for path in (ns.expected, ns.actual):
        try:
            traces.append(tokens_from_json(_load_json(path)))
        except _BAD_INPUT as exc:
            print(f"❌ cannot read trace {path}: {exc}", file=sys.stderr)
            return 1
    expected, actual = traces
    if expected == actual:
        print("✓ token traces are equivalent")
        return 0
    print("✗ token traces differ")
    print(f"  expected: {dumps(tokens_to_json(expected))}")
    print(f"  actual:   {dumps(tokens_to_json(actual))}")
    return 1


# -----------------------------------------------------------------------------
# Argument parsing
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="token-oracle",
                                 description="token trace encode/decode/compare toolkit")
    ap.add_argument("--verbose", "-v", action="store_true", help="DEBUG logging to stderr")
    sub = ap.add_subparsers(dest="cmd", required=True)

    # encode ---------------------------------------------------------
    sp = sub.add_parser("encode", help="JSON value → token trace")
    sp.add_argument("--input", "-i", type=Path, required=True)
    sp.add_argument("--output", "-o", type=Path, required=True)
    sp.add_argument("--compact", action="store_true", help="single-line output")
    sp.set_defaults(func=cmd_encode)

    # decode ---------------------------------------------------------
    sp = sub.add_parser("decode", help="token trace → JSON value")
    sp.add_argument("--input", "-i", type=Path, required=True)
    sp.add_argument("--output", "-o", type=Path, required=True)
    sp.add_argument("--not-self-describing", action="store_true",
                    help="reject decode_any (every trace then fails)")
    sp.set_defaults(func=cmd_decode)

    # compare --------------------------------------------------------
    sp = sub.add_parser("compare", help="equivalence of two token traces")
    sp.add_argument("expected", type=Path)
    sp.add_argument("actual", type=Path)
    sp.set_defaults(func=cmd_compare)
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    ns = build_parser().parse_args(argv)
    if ns.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")
    return ns.func(ns)


if __name__ == "__main__":
    sys.exit(main())
