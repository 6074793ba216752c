"""Conversions between 256-bit targets and difficulties, plus numeric helpers."""

from __future__ import annotations

import logging
import math
import struct

from poolkit.sha2 import sha256

log = logging.getLogger(__name__)

PAGESIZE = 4096

TRUEDIFFONE = 26959535291011309493156476344723991336010898738574164086137773096960.0
_BITS192 = 6277101735386680763835789423207666416102355444464034512896.0
_BITS128 = 340282366920938463463374607431768211456.0
_BITS64 = 18446744073709551616.0
_U64 = 0xFFFFFFFFFFFFFFFF

_LE4 = struct.Struct("<4Q")
_BE4 = struct.Struct(">4Q")


def le256todouble(target: bytes) -> float:
    """Convert a little-endian 256-bit value to a float."""
    w0, w1, w2, w3 = _LE4.unpack(bytes(target[:32]))
    value = w3 * _BITS192
    value += w2 * _BITS128
    value += w1 * _BITS64
    value += w0
    return value


def be256todouble(target: bytes) -> float:
    """Convert a big-endian 256-bit value to a float."""
    w3, w2, w1, w0 = _BE4.unpack(bytes(target[:32]))
    value = w3 * _BITS192
    value += w2 * _BITS128
    value += w1 * _BITS64
    value += w0
    return value


def diff_from_target(target: bytes) -> float:
    """Return the difficulty of a little-endian binary target."""
    value = le256todouble(target)
    if value <= 0:
        value = 1
    return TRUEDIFFONE / value


def diff_from_betarget(target: bytes) -> float:
    """Return the difficulty of a big-endian binary target."""
    value = be256todouble(target)
    if value <= 0:
        value = 1
    return TRUEDIFFONE / value


def diff_from_nbits(nbits: bytes) -> float:
    """Return the network difficulty from the 4-byte compact nbits form."""
    shift = nbits[0]
    log.debug("Nbits is %s", bytes(nbits[:4]).hex())
    if shift < 3:
        log.warning("Corrupt shift of %d in nbits", shift)
        shift = 3
    elif shift > 32:
        log.warning("Corrupt shift of %d in nbits", shift)
        shift = 32
    target = bytearray(32)
    start = 32 - shift
    target[start : start + 3] = bytes(nbits[1:4])
    return diff_from_betarget(bytes(target))


def target_from_diff(diff: float) -> bytes:
    """Return the little-endian 256-bit target for a difficulty."""
    if diff == 0.0:
        return b"\xff" * 32
    remaining = TRUEDIFFONE / diff
    words = []
    for scale in (_BITS192, _BITS128, _BITS64):
        h64 = int(remaining / scale) & _U64
        words.append(h64)
        remaining -= float(h64) * scale
    words.append(int(remaining) & _U64)
    w3, w2, w1, w0 = words
    return _LE4.pack(w0, w1, w2, w3)


def gen_hash(data: bytes) -> bytes:
    """Return the double SHA-256 of ``data``."""
    return sha256(sha256(data))


def suffix_string(val: float, sigdigits: int = 0) -> str:
    """Format ``val`` with a K/M/G/T/P/E suffix.

    With ``sigdigits`` the number is padded to that many significant digits.
    """
    kilo = 1000.0
    if val >= 1e18:
        dval = val / 1e15 / kilo
        suffix = "E"
    elif val >= 1e15:
        dval = val / 1e12 / kilo
        suffix = "P"
    elif val >= 1e12:
        dval = val / 1e9 / kilo
        suffix = "T"
    elif val >= 1e9:
        dval = val / 1e6 / kilo
        suffix = "G"
    elif val >= 1e6:
        dval = val / kilo / kilo
        suffix = "M"
    elif val >= kilo:
        dval = val / kilo
        suffix = "K"
    else:
        dval = val
        suffix = ""

    if not sigdigits:
        if suffix:
            return "%.3g%s" % (dval, suffix)
        return "%d%s" % (int(dval), suffix)
    ndigits = sigdigits - 1 - (math.floor(math.log10(dval)) if dval > 0.0 else 0)
    if ndigits < 0:
        ndigits = 6
    return "%*.*f%s" % (sigdigits + 1, ndigits, dval, suffix)


def decay_time(f: float, fadd: float, fsecs: float, interval: float) -> float:
    """Return ``f`` updated as an exponentially decaying average over ``interval``."""
    if fsecs <= 0:
        return f
    dexp = min(fsecs / interval, 36)
    fprop = 1.0 - 1 / math.exp(dexp)
    ftotal = 1.0 + fprop
    f += fadd / fsecs * fprop
    f /= ftotal
    if f < 2e-16:
        f = 0.0
    return f


def round_up_page(length: int) -> int:
    """Round ``length`` up to a whole number of pages."""
    rem = length % PAGESIZE
    return length + PAGESIZE - rem if rem else length


def align_len(length: int) -> int:
    """Round ``length`` up to a multiple of four."""
    rem = length % 4
    return length + 4 - rem if rem else length