"""Bob Jenkins' lookup3 ``hashlittle`` hash for hash-table lookup.

The hash is not cryptographic; it spreads keys evenly over power-of-two
sized tables.
"""

from __future__ import annotations

import struct

_MASK = 0xFFFFFFFF
_WORDS = struct.Struct("<3I")


def hashsize(n: int) -> int:
    """Return the size of a table indexed by ``n`` bits."""
    return 1 << n


def hashmask(n: int) -> int:
    """Return the mask that keeps the low ``n`` bits of a hash."""
    return hashsize(n) - 1


def _rot(x: int, k: int) -> int:
    return ((x << k) | (x >> (32 - k))) & _MASK


def _mix(a: int, b: int, c: int) -> tuple[int, int, int]:
    a = (a - c) & _MASK; a ^= _rot(c, 4); c = (c + b) & _MASK
    b = (b - a) & _MASK; b ^= _rot(a, 6); a = (a + c) & _MASK
    c = (c - b) & _MASK; c ^= _rot(b, 8); b = (b + a) & _MASK
    a = (a - c) & _MASK; a ^= _rot(c, 16); c = (c + b) & _MASK
    b = (b - a) & _MASK; b ^= _rot(a, 19); a = (a + c) & _MASK
    c = (c - b) & _MASK; c ^= _rot(b, 4); b = (b + a) & _MASK
    return a, b, c


def _final(a: int, b: int, c: int) -> int:
    c ^= b; c = (c - _rot(b, 14)) & _MASK
    a ^= c; a = (a - _rot(c, 11)) & _MASK
    b ^= a; b = (b - _rot(a, 25)) & _MASK
    c ^= b; c = (c - _rot(b, 16)) & _MASK
    a ^= c; a = (a - _rot(c, 4)) & _MASK
    b ^= a; b = (b - _rot(a, 14)) & _MASK
    c ^= b; c = (c - _rot(b, 24)) & _MASK
    return c


def hashlittle(key: bytes | bytearray | memoryview | str, initval: int = 0) -> int:
    """Hash ``key`` into a 32-bit value, seeded with ``initval``.

    Strings are hashed as their UTF-8 encoding.
    """
    data = key.encode("utf-8") if isinstance(key, str) else bytes(memoryview(key))
    length = len(data)
    a = b = c = (0xDEADBEEF + (length & _MASK) + initval) & _MASK
    if not length:
        return c

    # Every block but the last is mixed; the last one goes through final().
    last = ((length - 1) // 12) * 12
    for offset in range(0, last, 12):
        x, y, z = _WORDS.unpack_from(data, offset)
        a, b, c = _mix((a + x) & _MASK, (b + y) & _MASK, (c + z) & _MASK)

    x, y, z = _WORDS.unpack(data[last:].ljust(12, b"\x00"))
    return _final((a + x) & _MASK, (b + y) & _MASK, (c + z) & _MASK)