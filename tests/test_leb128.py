import pytest

from rtpkit.leb128 import LEB128Error, encode_leb128, read_leb128, write_leb128


@pytest.mark.parametrize(
    ("value", "encoded"),
    [
        (150, bytes.fromhex("9601")),
        (240, bytes.fromhex("f001")),
        (400, bytes.fromhex("9003")),
        (720, bytes.fromhex("d005")),
        (1200, bytes.fromhex("b009")),
    ],
)
def test_write_known_values(value, encoded):
    assert write_leb128(value) == encoded
    assert read_leb128(encoded) == (value, len(encoded))


def test_zero():
    assert write_leb128(0) == b"\x00"
    assert encode_leb128(0) == 0
    assert read_leb128(b"\x00") == (0, 1)


@pytest.mark.parametrize("value", [0, 1, 127, 128, 255, 16383, 16384, 2**32 - 1, 2**63])
def test_round_trip(value):
    encoded = write_leb128(value)
    assert read_leb128(encoded) == (value, len(encoded))


@pytest.mark.parametrize("value", [0, 5, 127, 128, 150, 1200, 70000, 2**40])
def test_encode_packs_written_bytes(value):
    assert encode_leb128(value) == int.from_bytes(write_leb128(value), "big")


@pytest.mark.parametrize("value", [1, 128, 300, 2**20])
def test_only_last_byte_lacks_continuation_bit(value):
    encoded = write_leb128(value)
    assert all(byte & 0x80 for byte in encoded[:-1])
    assert encoded[-1] & 0x80 == 0


def test_read_ignores_trailing_bytes():
    assert read_leb128(bytes.fromhex("9601ffff")) == (150, 2)


@pytest.mark.parametrize("buf", [b"", b"\x80", b"\xff\xff"])
def test_read_incomplete_raises(buf):
    with pytest.raises(LEB128Error):
        read_leb128(buf)


def test_negative_values_rejected():
    with pytest.raises(ValueError):
        write_leb128(-1)
    with pytest.raises(ValueError):
        encode_leb128(-5)