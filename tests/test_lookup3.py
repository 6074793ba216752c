import pytest

from poolkit.lookup3 import hashlittle, hashmask, hashsize

PHRASE = b"Four score and seven years ago"


def test_empty_key_returns_seed_state():
    assert hashlittle(b"", 0) == 0xDEADBEEF


def test_empty_key_with_seed_wraps_to_32_bits():
    assert hashlittle(b"", 0xDEADBEEF) == 0xBD5B7DDE


def test_reference_phrase_seed_zero():
    assert hashlittle(PHRASE, 0) == 0x17770551


def test_reference_phrase_seed_one():
    assert hashlittle(PHRASE, 1) == 0xCD628161


def test_default_seed_is_zero():
    assert hashlittle(PHRASE) == hashlittle(PHRASE, 0)


def test_str_hashes_as_utf8():
    assert hashlittle(PHRASE.decode("ascii"), 7) == hashlittle(PHRASE, 7)


def test_bytearray_and_memoryview_match_bytes():
    expected = hashlittle(PHRASE, 3)
    assert hashlittle(bytearray(PHRASE), 3) == expected
    assert hashlittle(memoryview(PHRASE), 3) == expected


@pytest.mark.parametrize("length", [1, 5, 11, 12, 13, 24, 25, 100])
def test_result_fits_in_32_bits_and_is_deterministic(length):
    key = bytes(range(length))
    value = hashlittle(key, 42)
    assert 0 <= value <= 0xFFFFFFFF
    assert hashlittle(key, 42) == value


@pytest.mark.parametrize("length", [1, 4, 12, 13, 30])
def test_trailing_zero_byte_changes_hash(length):
    key = b"x" * length
    assert hashlittle(key) != hashlittle(key + b"\x00")


def test_single_bit_flip_changes_hash():
    flipped = bytearray(PHRASE)
    flipped[17] ^= 0x01
    assert hashlittle(bytes(flipped)) != hashlittle(PHRASE)


def test_seed_changes_hash():
    assert hashlittle(b"ckpool", 0) != hashlittle(b"ckpool", 1)


def test_hashsize_is_power_of_two():
    assert hashsize(0) == 1
    assert hashsize(10) == 1024


def test_hashmask_is_size_minus_one():
    for n in range(0, 33):
        assert hashmask(n) == hashsize(n) - 1
        assert hashmask(n) & hashsize(n) == 0


def test_masked_hash_indexes_table():
    for word in (b"alpha", b"beta", b"gamma", PHRASE):
        assert hashlittle(word) & hashmask(8) < hashsize(8)


def test_negative_size_raises():
    with pytest.raises(ValueError):
        hashsize(-1)