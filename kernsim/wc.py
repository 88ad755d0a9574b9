"""Count lines, words and characters."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import IO, AnyStr

CHUNK = 512
_NEWLINE = ord("\n")
# A NUL byte separates words too.
_SEPARATORS = frozenset(b" \r\t\n\v\0")


@dataclass(frozen=True)
class Counts:
    """Line, word and character totals."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def count(stream: IO[AnyStr]) -> Counts:
    """Count a stream read to its end, in bytes or in characters."""
    lines = words = chars = 0
    inword = False
    while True:
        chunk = stream.read(CHUNK)
        if not chunk:
            break
        codes = chunk if isinstance(chunk, (bytes, bytearray)) else map(ord, chunk)
        for code in codes:
            chars += 1
            if code == _NEWLINE:
                lines += 1
            if code in _SEPARATORS:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return Counts(lines, words, chars)


def _report(stream: IO[AnyStr], name: str) -> bool:
    try:
        counts = count(stream)
    except OSError:
        print("wc: read error")
        return False
    print(f"{counts.lines} {counts.words} {counts.chars} {name}")
    return True


def main(argv: Sequence[str] | None = None) -> int:
    """Count each named file, or standard input when none is named."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        stdin = getattr(sys.stdin, "buffer", sys.stdin)
        return 0 if _report(stdin, "") else 1
    for path in args:
        try:
            stream = open(path, "rb")
        except OSError:
            print(f"wc: cannot open {path}")
            return 1
        with stream:
            if not _report(stream, path):
                return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())