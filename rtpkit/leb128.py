"""Unsigned LEB128 variable-length integers as used by AV1 and VLA."""

from __future__ import annotations

from .errors import RTPError

_SEVEN_LSB_BITMASK = 0x7F
_MSB_BITMASK = 0x80


class LEB128Error(RTPError):
    """A buffer ended before a LEB128 value was complete."""


def _check_unsigned(value: int) -> None:
    if value < 0:
        raise ValueError(f"LEB128 values must not be negative, got {value}")


def encode_leb128(value: int) -> int:
    """Return the LEB128 encoding of value packed into an integer, first byte highest."""
    _check_unsigned(value)
    out = 0
    while True:
        out |= value & _SEVEN_LSB_BITMASK
        value >>= 7
        if not value:
            return out
        out |= _MSB_BITMASK
        out <<= 8


def write_leb128(value: int) -> bytes:
    """Return the LEB128 encoding of value as bytes."""
    _check_unsigned(value)
    out = bytearray()
    while True:
        byte = value & _SEVEN_LSB_BITMASK
        value >>= 7
        if not value:
            out.append(byte)
            return bytes(out)
        out.append(byte | _MSB_BITMASK)


def read_leb128(buf: bytes) -> tuple[int, int]:
    """Decode a LEB128 value from the start of buf; return (value, bytes consumed)."""
    value = 0
    for index, byte in enumerate(buf):
        value |= (byte & _SEVEN_LSB_BITMASK) << (index * 7)
        if not byte & _MSB_BITMASK:
            return value, index + 1
    raise LEB128Error("payload ended before LEB128 was finished")