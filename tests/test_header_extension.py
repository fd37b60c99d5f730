import pytest

from rtpkit.errors import (
    ExtensionIDRangeError,
    ExtensionSizeError,
    HeaderExtensionNotFoundError,
    ShortBufferError,
)
from rtpkit.header_extension import (
    OneByteHeaderExtension,
    RawExtension,
    TwoByteHeaderExtension,
)

ONE_EMPTY = bytes([0xBE, 0xDE, 0x00, 0x00])
TWO_EMPTY = bytes([0x10, 0x00, 0x00, 0x00])

ONE_SIMPLE = bytes([0xBE, 0xDE, 0x00, 0x01, 0x50, 0xAA, 0x00, 0x00, 0x98, 0x36, 0xBE, 0x88, 0x9E])
ONE_TWO = bytes([0xBE, 0xDE, 0x00, 0x01, 0x10, 0xAA, 0x20, 0xBB])
ONE_PADDED = bytes([
    0xBE, 0xDE, 0x00, 0x03, 0x10, 0xAA, 0x21, 0xBB,
    0xBB, 0x00, 0x00, 0x33, 0xCC, 0xCC, 0xCC, 0xCC,
])
TWO_SIMPLE = bytes([0x10, 0x00, 0x00, 0x07, 0x05, 0x18] + [0xAA] * 24 + [0x00, 0x00])
TWO_PADDED = bytes([
    0x10, 0x00, 0x00, 0x03, 0x01, 0x00, 0x02, 0x01,
    0xBB, 0x00, 0x03, 0x04, 0xCC, 0xCC, 0xCC, 0xCC,
])
TWO_LARGE = bytes([0x10, 0x00, 0x00, 0x06, 0x01, 0x00, 0x02, 0x01, 0xBB, 0x03, 0x11] + [0xCC] * 17)


def _parsed(cls, raw):
    ext = cls()
    assert ext.unmarshal(raw) == len(raw)
    return ext


@pytest.mark.parametrize(
    "cls, raw",
    [
        (OneByteHeaderExtension, ONE_SIMPLE),
        (OneByteHeaderExtension, ONE_TWO),
        (OneByteHeaderExtension, ONE_PADDED),
        (TwoByteHeaderExtension, TWO_SIMPLE),
        (TwoByteHeaderExtension, TWO_PADDED),
        (TwoByteHeaderExtension, TWO_LARGE),
    ],
)
def test_roundtrip(cls, raw):
    assert _parsed(cls, raw).marshal() == raw


@pytest.mark.parametrize(
    "cls, raw, expected",
    [
        (OneByteHeaderExtension, ONE_TWO, {1: b"\xaa", 2: b"\xbb"}),
        (OneByteHeaderExtension, ONE_PADDED, {1: b"\xaa", 2: b"\xbb\xbb", 3: b"\xcc" * 4}),
        (TwoByteHeaderExtension, TWO_PADDED, {1: b"", 2: b"\xbb", 3: b"\xcc" * 4}),
        (TwoByteHeaderExtension, TWO_LARGE, {1: b"", 2: b"\xbb", 3: b"\xcc" * 17}),
    ],
)
def test_get_payloads(cls, raw, expected):
    ext = _parsed(cls, raw)
    assert {ext_id: ext.get(ext_id) for ext_id in expected} == expected


@pytest.mark.parametrize(
    "cls, raw, ids",
    [
        (TwoByteHeaderExtension, TWO_PADDED, [1, 2, 3]),
        (OneByteHeaderExtension, bytes([0xBE, 0xDE, 0x00, 0x01, 0x10, 0xAA, 0xF0, 0x00]), [1]),
    ],
)
def test_get_ids(cls, raw, ids):
    assert _parsed(cls, raw).get_ids() == ids


@pytest.mark.parametrize("fill", [0x00, 0xFF])
def test_marshal_to_clean_and_dirty_buffer(fill):
    ext = OneByteHeaderExtension()
    assert ext.unmarshal(ONE_PADDED) == len(ONE_PADDED)
    buf = bytearray([fill] * 1000)
    n = ext.marshal_to(buf)
    assert n == len(ONE_PADDED)
    assert bytes(buf[:n]) == ONE_PADDED


@pytest.mark.parametrize(
    "cls, empty", [(OneByteHeaderExtension, ONE_EMPTY), (TwoByteHeaderExtension, TWO_EMPTY)]
)
def test_delete_extension(cls, empty):
    ext = _parsed(cls, empty)
    ext.set(1, b"\xbb")
    assert ext.get(1) == b"\xbb"
    ext.delete(1)
    assert ext.get(1) is None
    with pytest.raises(HeaderExtensionNotFoundError):
        ext.delete(1)


@pytest.mark.parametrize(
    "cls, empty, items, ids, expected",
    [
        (
            OneByteHeaderExtension, ONE_EMPTY, [(1, b"\xaa"), (2, b"\xbb\xcc")], [1, 2],
            bytes([0xBE, 0xDE, 0x00, 0x02, 0x10, 0xAA, 0x21, 0xBB, 0xCC]),
        ),
        (
            TwoByteHeaderExtension, TWO_EMPTY, [(7, b"\x01\x02")], [7],
            bytes([0x10, 0x00, 0x00, 0x01, 0x07, 0x02, 0x01, 0x02]),
        ),
    ],
)
def test_set_appends_and_counts(cls, empty, items, ids, expected):
    ext = _parsed(cls, empty)
    for ext_id, payload in items:
        ext.set(ext_id, payload)
    assert ext.get_ids() == ids
    assert ext.marshal() == expected
    assert ext.marshal_size() == len(expected)


@pytest.mark.parametrize(
    "cls, empty, ext_id, payload, error",
    [
        (OneByteHeaderExtension, ONE_EMPTY, 0, b"\xbb", ExtensionIDRangeError),
        (OneByteHeaderExtension, ONE_EMPTY, 15, b"\xbb", ExtensionIDRangeError),
        (OneByteHeaderExtension, ONE_EMPTY, 1, bytes(17), ExtensionSizeError),
        (TwoByteHeaderExtension, TWO_EMPTY, 0, b"\xbb", ExtensionIDRangeError),
        (TwoByteHeaderExtension, TWO_EMPTY, 1, bytes(256), ExtensionSizeError),
    ],
)
def test_set_rejects_invalid(cls, empty, ext_id, payload, error):
    ext = _parsed(cls, empty)
    with pytest.raises(error):
        ext.set(ext_id, payload)


@pytest.mark.parametrize(
    "cls, raw",
    [
        (OneByteHeaderExtension, TWO_EMPTY),
        (TwoByteHeaderExtension, ONE_EMPTY),
        (RawExtension, ONE_EMPTY),
        (RawExtension, TWO_EMPTY),
    ],
)
def test_unmarshal_rejects_wrong_profile(cls, raw):
    with pytest.raises(HeaderExtensionNotFoundError):
        cls().unmarshal(raw)


def test_marshal_to_short_buffer():
    ext = OneByteHeaderExtension()
    assert ext.unmarshal(ONE_TWO) == len(ONE_TWO)
    with pytest.raises(ShortBufferError):
        ext.marshal_to(bytearray(4))


def test_raw_extension_behaviour():
    raw = bytes([0x00, 0x01, 0x00, 0x01, 0xFF, 0xFF, 0xFF, 0xFF])
    ext = RawExtension()
    assert ext.unmarshal(raw) == len(raw)
    assert ext.marshal() == raw
    assert ext.get_ids() == [0]
    assert ext.get(0) == raw
    assert ext.get(1) is None

    ext.set(0, b"\x01\x02\x03\x04")
    assert ext.get(0) == b"\x01\x02\x03\x04"
    with pytest.raises(ExtensionIDRangeError):
        ext.set(1, b"\x00")

    ext.delete(0)
    assert ext.get(0) is None
    assert ext.marshal_size() == 0
    with pytest.raises(ExtensionIDRangeError):
        ext.delete(2)