"""NUL-terminated string helpers and line reading.

Strings may be given as ``str`` (encoded as UTF-8) or as bytes-like objects;
a NUL byte ends a string just as the end of the data does.
"""

from __future__ import annotations

from itertools import islice, takewhile, zip_longest
from typing import IO, AnyStr, Union

Text = Union[str, bytes, bytearray, memoryview]

_LINE_ENDS = {"\n", "\r", b"\n", b"\r"}


def _raw(s: Text) -> bytes:
    return s.encode() if isinstance(s, str) else bytes(s)


def _cstr(s: Text) -> bytes:
    raw = _raw(s)
    end = raw.find(0)
    return raw if end < 0 else raw[:end]


def _compare(a: bytes, b: bytes, limit: int | None) -> int:
    pairs = zip_longest(a, b, fillvalue=0)
    for ca, cb in islice(pairs, limit):
        if ca == 0 or ca != cb:
            return ca - cb
    return 0


def memcmp(a: Text, b: Text, n: int) -> int:
    """Compare the first n bytes; return the difference of the first mismatch."""
    left, right = _raw(a), _raw(b)
    if n < 0 or n > len(left) or n > len(right):
        raise ValueError(f"cannot compare {n} bytes of {len(left)} and {len(right)}")
    for x, y in zip(left[:n], right[:n]):
        if x != y:
            return x - y
    return 0


def strncmp(p: Text, q: Text, n: int) -> int:
    """Compare at most n characters of two strings."""
    if n < 0:
        raise ValueError(f"negative length {n}")
    return _compare(_cstr(p), _cstr(q), n)


def strcmp(p: Text, q: Text) -> int:
    """Compare two strings."""
    return _compare(_cstr(p), _cstr(q), None)


def strlen(s: Text) -> int:
    """Number of bytes before the terminating NUL."""
    return len(_cstr(s))


def strncpy(src: Text, n: int) -> bytes:
    """The n-byte buffer produced by copying src: truncated, or padded with NULs.

    When src is n bytes or longer the result carries no terminator.
    """
    if n <= 0:
        return b""
    copied = _cstr(src)[:n]
    return copied + bytes(n - len(copied))


def safestrcpy(src: Text, n: int) -> bytes:
    """The string left in an n-byte buffer that is always NUL-terminated."""
    if n <= 0:
        return b""
    return _cstr(src)[: n - 1]


def atoi(s: Text) -> int:
    """Value of the leading decimal digits; no sign or spaces are accepted."""
    text = s if isinstance(s, str) else _raw(s).decode("latin-1")
    digits = "".join(takewhile(lambda c: "0" <= c <= "9", text))
    return int(digits) if digits else 0


def gets(stream: IO[AnyStr], limit: int) -> AnyStr:
    """Read one character at a time until a line end, EOF or limit - 1 characters."""
    chars = []
    while len(chars) + 1 < limit:
        c = stream.read(1)
        if not c:
            break
        chars.append(c)
        if c in _LINE_ENDS:
            break
    if not chars:
        return stream.read(0)
    return chars[0][:0].join(chars)