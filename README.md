# poolkit

Building blocks for mining pool software, in pure Python with no
third-party dependencies.

## What is inside

- `poolkit.sha2`: an incremental SHA-256 with a hashlib-like interface
  (`Sha256` with `update`, `digest`, `hexdigest`, `copy`) and the one-shot
  `sha256(data)`.
- `poolkit.lookup3`: the `hashlittle(key, initval)` table hash, with
  `hashsize(n)` and `hashmask(n)` for power-of-two tables.
- `poolkit.codec`:
  - hex and base64: `bin2hex`, `hex2bin`, `validhex`, `http_base64`;
  - base58 decoding to 25 bytes: `b58tobin`;
  - cash address decoding: `decode_cashaddr`, returning a `CashAddress`
    (`prefix`, `script`, `hash`) or raising `CashAddrError`; without an
    explicit prefix, `ecash` and then `ectest` are tried;
  - output scripts for base58, segwit and cash addresses: `address_to_txn`;
  - coinbase height serialisation: `ser_number`, `get_sernumber`;
  - 256-bit helpers: `fulltest`, `swap_256`, `bswap_256`, `flip_32`, `flip_80`;
  - string helpers: `safecmp`, `cmdmatch`.
- `poolkit.difficulty`: converting between targets, nbits and difficulty
  (`le256todouble`, `be256todouble`, `diff_from_target`,
  `diff_from_betarget`, `diff_from_nbits`, `target_from_diff`), double
  SHA-256 (`gen_hash`), exponentially decaying averages (`decay_time`),
  human-readable numbers with K/M/G/T/P/E suffixes (`suffix_string`), and
  size rounding (`round_up_page`, `align_len`).
- `poolkit.net`: URL parsing (`extract_sockaddr`), turning addresses into
  numeric host and port (`url_from_sockaddr`, `url_from_serverurl`,
  `url_from_socket`), binding and connecting TCP sockets (`bind_socket`,
  `connect_socket`), socket options (`keep_sockalive`, `nolinger_socket`),
  readiness waits (`wait_read_select`, `wait_write_select`, `wait_close`),
  whole-buffer reads and writes (`read_length`, `write_length`,
  `write_socket`), draining (`empty_socket`) and round-trip estimation
  (`round_trip`). Failures raise `SocketError`.
- `poolkit.jsonutil`: lenient accessors for decoded JSON values
  (`json_array_string`, `json_object_dup`, `json_get_string`,
  `json_get_int`, `json_get_double`).

## Example

```python
from poolkit.codec import bin2hex
from poolkit.difficulty import diff_from_nbits, target_from_diff
from poolkit.net import extract_sockaddr
from poolkit.sha2 import sha256

print(bin2hex(sha256(b"abc")))
print(diff_from_nbits(bytes.fromhex("1d00ffff")))   # 1.0
target = target_from_diff(1.0)
print(extract_sockaddr("stratum+tcp://pool.example.com:3333"))  # ('pool.example.com', '3333')
```

## What it does not do

poolkit is a library only. It has no command-line tools, runs no pool,
stratum server or proxy, and has no locking primitives, share error codes,
time and log-rotation helpers, or unix-socket messaging. Its networking is
limited to the TCP helpers in `poolkit.net`.

## Tests

```
pip install -e .[test]
pytest
```