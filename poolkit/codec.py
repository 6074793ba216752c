"""Hex, base58, base64 and address codecs plus small binary helpers."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

_HEXDIGITS = frozenset("0123456789abcdefABCDEF")
_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_VALUES = {ch: i for i, ch in enumerate(_B58_ALPHABET)}
_B58_MODULUS = 1 << 224
_B58_OUT_MASK = (1 << 200) - 1

_BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_BECH32_VALUES = {
    **{ch: i for i, ch in enumerate(_BECH32_CHARSET)},
    **{ch.upper(): i for i, ch in enumerate(_BECH32_CHARSET)},
}

DEFAULT_PREFIXES = ("ecash", "ectest")


class CashAddrError(ValueError):
    """Raised when a cash address cannot be decoded."""


@dataclass(frozen=True)
class CashAddress:
    """A decoded cash address."""

    prefix: str
    script: bool
    hash: bytes


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(memoryview(data))


def bin2hex(data: bytes | bytearray | memoryview) -> str:
    """Return the lower-case hexadecimal text of ``data``."""
    return bytes(memoryview(data)).hex()


def validhex(text: str) -> bool:
    """Return whether ``text`` is a non-empty, even-length string of hex digits."""
    if not text or len(text) % 2:
        log.debug("Invalid hex due to length %d", len(text or ""))
        return False
    for offset, ch in enumerate(text):
        if ch not in _HEXDIGITS:
            log.debug("Invalid hex due to value %r at offset %d", ch, offset)
            return False
    return True


def hex2bin(hexstr: str | bytes, length: int) -> bytes:
    """Decode exactly ``length`` bytes from ``hexstr``.

    Raises ValueError if the text holds invalid digits or is not exactly
    ``2 * length`` characters long.
    """
    text = hexstr.decode("latin-1") if isinstance(hexstr, (bytes, bytearray)) else hexstr
    if len(text) != 2 * length:
        raise ValueError(f"hex string of {len(text)} chars does not encode {length} bytes")
    if any(ch not in _HEXDIGITS for ch in text):
        raise ValueError("invalid binary encoding in hex string")
    return bytes.fromhex(text)


def http_base64(text: str | bytes) -> str:
    """Return the MIME base64 encoding of ``text``."""
    return base64.b64encode(_as_bytes(text)).decode("ascii")


def b58tobin(b58: str) -> bytes:
    """Decode a base58 string into its 25-byte binary form."""
    value = 0
    for ch in b58:
        digit = _B58_VALUES.get(ch)
        if digit is None:
            raise ValueError(f"invalid base58 character {ch!r}")
        value = (value * 58 + digit) % _B58_MODULUS
    return (value & _B58_OUT_MASK).to_bytes(25, "big")


def safecmp(a: str | None, b: str | None) -> int:
    """Compare two strings, tolerating None and empty strings.

    Returns 0 when equal, -1 when exactly one is missing or empty, otherwise
    the sign of the ordinary string comparison.
    """
    if a is None or b is None:
        return 0 if a is b else -1
    if not a or not b:
        return 0 if len(a) == len(b) else -1
    return (a > b) - (a < b)


def cmdmatch(buf: str | None, cmd: str) -> bool:
    """Return whether ``buf`` starts with ``cmd``, ignoring case."""
    if not buf or len(buf) < len(cmd):
        return False
    return buf[: len(cmd)].lower() == cmd.lower()


def _polymod(values: list[int]) -> int:
    c = 1
    for d in values:
        c0 = c >> 35
        c = ((c & 0x07FFFFFFFF) << 5) ^ d
        if c0 & 0x01:
            c ^= 0x98F2BC8E61
        if c0 & 0x02:
            c ^= 0x79B76D99E2
        if c0 & 0x04:
            c ^= 0xF33E5FB3C4
        if c0 & 0x08:
            c ^= 0xAE2EABE2A8
        if c0 & 0x10:
            c ^= 0x1E4F43E470
    return c ^ 1


def _verify_checksum(prefix: str, payload: list[int]) -> bool:
    data = [ord(ch) & 0x1F for ch in prefix] + [0] + payload
    return _polymod(data) == 0


def _convert_bits(values: list[int]) -> bytes:
    """Regroup 5-bit values into bytes, dropping any incomplete tail."""
    out = bytearray()
    acc = 0
    bits = 0
    for v in values:
        acc = ((acc << 5) | v) & 0xFFFFFFFF
        bits += 5
        while bits >= 8:
            bits -= 8
            out.append((acc >> bits) & 0xFF)
    return bytes(out)


def decode_cashaddr(addr: str, prefix_len: int = 16) -> CashAddress:
    """Decode a cash address holding a 20-byte hash.

    Without an explicit prefix the default prefixes are tried in turn.
    Raises CashAddrError on any malformed input.
    """
    if addr is None:
        raise CashAddrError("null address passed to decode_cashaddr")

    lower = upper = has_number = False
    prefix_count = 0
    for i, ch in enumerate(addr):
        if "a" <= ch <= "z":
            lower = True
        elif "A" <= ch <= "Z":
            upper = True
        elif "0" <= ch <= "9":
            has_number = True
        elif ch == ":":
            if has_number or i == 0 or prefix_count:
                raise CashAddrError(f"invalid prefix in cash address {addr}")
            prefix_count = i
        else:
            raise CashAddrError(
                f"unexpected character 0x{ord(ch):02x} in cash address {addr} at pos {i}"
            )

    if upper and lower:
        raise CashAddrError(f"cannot mix lower and upper case in a cash address: {addr}")

    has_prefix = prefix_count > 0
    payload_start = prefix_count + 1 if has_prefix else 0
    if has_prefix and prefix_len <= prefix_count:
        raise CashAddrError(f"cash address prefix is too long: {addr}")

    payload_text = addr[payload_start:]
    if not payload_text:
        raise CashAddrError(f"empty payload in cash address {addr}")
    payload = []
    for ch in payload_text:
        value = _BECH32_VALUES.get(ch)
        if value is None:
            raise CashAddrError(
                f"invalid character 0x{ord(ch):02x} in payload for cash address {addr}"
            )
        payload.append(value)

    candidates = [addr[:prefix_count].lower()] if has_prefix else list(DEFAULT_PREFIXES)
    prefix = None
    for candidate in candidates:
        if not has_prefix and prefix_len <= len(candidate):
            log.error("Cash address prefix is too long: %s:%s", candidate, addr)
            continue
        if _verify_checksum(candidate, payload):
            prefix = candidate
            break
        if has_prefix:
            raise CashAddrError(f"invalid checksum for cash address {addr}")
        log.warning("Invalid checksum for cash address %s using prefix %s", addr, candidate)
    if prefix is None:
        raise CashAddrError(f"unable to guess the prefix for cash address {addr}")

    body = payload[:-8]
    if not body:
        raise CashAddrError(f"payload decoding failed for cash address {addr}")
    data = _convert_bits(body)
    if len(data) != len(body) * 5 // 8 or not data:
        raise CashAddrError(f"payload decoding failed for cash address {addr}")

    version = data[0]
    if version & 0x80:
        raise CashAddrError(f"invalid version {version} for cash address {addr}")
    hash_size = 20 + 4 * (version & 0x03)
    if version & 0x04:
        hash_size *= 2
    if len(data) != hash_size + 1:
        raise CashAddrError(
            f"wrong hash size {len(data) - 1} for cash address {addr} (expected {hash_size})"
        )
    if hash_size != 20:
        raise CashAddrError(
            f"wrong hash size {hash_size} for cash address {addr}: only 20 byte hashes are supported"
        )
    return CashAddress(prefix=prefix, script=((version >> 3) & 0x1F) == 1, hash=data[1:21])


def _pubkey_txn(hash20: bytes) -> bytes:
    return b"\x76\xa9\x14" + hash20 + b"\x88\xac"


def _script_txn(hash20: bytes) -> bytes:
    return b"\xa9\x14" + hash20 + b"\x87"


def _segwit_txn(addr: str) -> bytes:
    sep = addr.rfind("1")
    if sep < 0:
        raise ValueError(f"no separator in segwit address {addr}")
    values = []
    for ch in addr[sep + 1 : len(addr) - 6]:
        value = _BECH32_VALUES.get(ch)
        if value is None:
            raise ValueError(f"invalid character {ch!r} in segwit address {addr}")
        values.append(value)
    if not values:
        raise ValueError(f"empty data in segwit address {addr}")
    version = values[0]
    witness = _convert_bits(values[1:])
    opcode = version + 0x50 if version else 0
    return bytes([opcode, len(witness)]) + witness


def address_to_txn(
    addr: str, script: bool = False, segwit: bool = False, cashaddr: bool = False
) -> bytes:
    """Return the output script paying to ``addr``."""
    if cashaddr:
        decoded = decode_cashaddr(addr)
        if decoded.script != script:
            log.error("Cash address decoding mismatch with the node's address type")
        return _script_txn(decoded.hash) if script else _pubkey_txn(decoded.hash)
    if segwit:
        return _segwit_txn(addr)
    hash20 = b58tobin(addr)[1:21]
    return _script_txn(hash20) if script else _pubkey_txn(hash20)


def ser_number(val: int) -> bytes:
    """Serialise a block height for a coinbase: a length byte then little-endian bytes."""
    if val < 0x80:
        length = 1
    elif val < 0x8000:
        length = 2
    elif val < 0x800000:
        length = 3
    else:
        length = 4
    return bytes([length]) + val.to_bytes(4, "little", signed=True)[:length]


def get_sernumber(data: bytes) -> int:
    """Read back a number written by :func:`ser_number`; 0 if the length is bad."""
    length = data[0]
    if length < 1 or length > 4:
        return 0
    return int.from_bytes(bytes(data[1 : 1 + length]).ljust(4, b"\x00"), "little", signed=True)


def fulltest(hash: bytes, target: bytes) -> bool:
    """Return whether a little-endian 256-bit hash is at or below the target."""
    return int.from_bytes(bytes(hash[:32]), "little") <= int.from_bytes(bytes(target[:32]), "little")


def _words(data: bytes, count: int) -> list[bytes]:
    raw = bytes(memoryview(data))
    if len(raw) != count * 4:
        raise ValueError(f"expected {count * 4} bytes, got {len(raw)}")
    return [raw[i : i + 4] for i in range(0, len(raw), 4)]


def swap_256(data: bytes) -> bytes:
    """Reverse the order of the eight 32-bit words of a 256-bit value."""
    return b"".join(reversed(_words(data, 8)))


def bswap_256(data: bytes) -> bytes:
    """Reverse word order and byte-swap each word of a 256-bit value."""
    return b"".join(w[::-1] for w in reversed(_words(data, 8)))


def flip_32(data: bytes) -> bytes:
    """Byte-swap each of the eight 32-bit words of a 256-bit value."""
    return b"".join(w[::-1] for w in _words(data, 8))


def flip_80(data: bytes) -> bytes:
    """Byte-swap each of the twenty 32-bit words of an 80-byte header."""
    return b"".join(w[::-1] for w in _words(data, 20))