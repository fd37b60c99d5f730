"""RFC 8285 one-byte and two-byte header extensions, and RFC 3550 raw extensions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator

from .errors import (
    ExtensionIDRangeError,
    ExtensionSizeError,
    HeaderExtensionNotFoundError,
    ShortBufferError,
    TooSmallError,
)

EXTENSION_PROFILE_ONE_BYTE = 0xBEDE
EXTENSION_PROFILE_TWO_BYTE = 0x1000

_RESERVED_ID = 0xF
_PREAMBLE = 4


def _read_profile(buf: bytes) -> int:
    if len(buf) < 2:
        raise TooSmallError(f"extension buffer of {len(buf)} bytes has no profile")
    return int.from_bytes(buf[0:2], "big")


def _profile_not_found(buf: bytes) -> HeaderExtensionNotFoundError:
    return HeaderExtensionNotFoundError(
        f"header extension not found actual({bytes(buf[0:2]).hex()})"
    )


class HeaderExtension(ABC):
    """An RTP header extension block held in its wire form."""

    def __init__(self, payload: bytes | None = None) -> None:
        self._payload: bytearray | None = (
            bytearray(payload) if payload is not None else bytearray()
        )

    @abstractmethod
    def set(self, ext_id: int, payload: bytes) -> None:
        """Set the payload of the extension with the given ID."""

    @abstractmethod
    def get_ids(self) -> list[int]:
        """Return the IDs of the extensions present."""

    @abstractmethod
    def get(self, ext_id: int) -> bytes | None:
        """Return the payload of the extension with the given ID, or None."""

    @abstractmethod
    def delete(self, ext_id: int) -> None:
        """Remove the extension with the given ID."""

    @abstractmethod
    def unmarshal(self, buf: bytes) -> int:
        """Parse the extension block and return the number of bytes consumed."""

    def marshal(self) -> bytes:
        """Return the extension block as bytes."""
        return bytes(self._payload or b"")

    def marshal_to(self, buf: bytearray | memoryview) -> int:
        """Write the extension block into buf and return the bytes written."""
        size = self.marshal_size()
        if size > len(buf):
            raise ShortBufferError(f"buffer of {len(buf)} bytes, need {size}")
        buf[:size] = self.marshal()
        return size

    def marshal_size(self) -> int:
        """Return the size of the extension block in bytes."""
        return len(self._payload or b"")


class _ElementExtension(HeaderExtension):
    """An RFC 8285 block made of ID/length elements after a 4-byte preamble."""

    _PROFILE: int
    _HEADER_LEN: int
    _MAX_ID: int
    _MAX_SIZE: int
    _NAME: str
    _STOP_ID: int | None = None

    @abstractmethod
    def _parse_element(self, data: bytearray, pos: int) -> tuple[int, int]:
        """Return (id, payload length) of the element starting at pos."""

    @abstractmethod
    def _element_header(self, ext_id: int, size: int) -> bytes:
        """Return the wire header of an element."""

    def _require_preamble(self) -> bytearray:
        payload = self._payload
        if payload is None or len(payload) < _PREAMBLE:
            raise TooSmallError("extension block has no profile and length")
        return payload

    def _entries(self) -> Iterator[tuple[int, int, int]]:
        """Yield (header offset, id, payload length) for each element."""
        data = self._payload or bytearray()
        n = _PREAMBLE
        while n < len(data):
            if data[n] == 0x00:
                n += 1
                continue
            found, length = self._parse_element(data, n)
            yield n, found, length
            n += self._HEADER_LEN + length

    def set(self, ext_id: int, payload: bytes) -> None:
        if ext_id < 1 or ext_id > self._MAX_ID:
            raise ExtensionIDRangeError(
                f"header extension id must be between 1 and {self._MAX_ID} for RFC 8285 "
                f"{self._NAME} extensions actual({ext_id})"
            )
        if len(payload) > self._MAX_SIZE:
            raise ExtensionSizeError(
                f"header extension payload must be {self._MAX_SIZE} bytes or less for "
                f"RFC 8285 {self._NAME} extensions actual({len(payload)})"
            )
        data = self._require_preamble()
        keep = 2 * self._HEADER_LEN
        for pos, found, length in self._entries():
            if found == ext_id:
                self._payload = data[: pos + keep] + bytes(payload) + data[pos + keep + length :]
                return
        data.extend(self._element_header(ext_id, len(payload)))
        data.extend(payload)
        count = int.from_bytes(data[2:4], "big")
        data[2:4] = ((count + 1) & 0xFFFF).to_bytes(2, "big")

    def get_ids(self) -> list[int]:
        self._require_preamble()
        ids = []
        for _, found, _ in self._entries():
            if found == self._STOP_ID:
                break
            ids.append(found)
        return ids

    def get(self, ext_id: int) -> bytes | None:
        data = self._payload or bytearray()
        for pos, found, length in self._entries():
            if found == ext_id:
                start = pos + self._HEADER_LEN
                return bytes(data[start : start + length])
        return None

    def delete(self, ext_id: int) -> None:
        data = self._payload or bytearray()
        for pos, found, length in self._entries():
            if found == ext_id:
                del data[pos : pos + self._HEADER_LEN + length]
                return
        raise HeaderExtensionNotFoundError("header extension not found")

    def unmarshal(self, buf: bytes) -> int:
        if _read_profile(buf) != self._PROFILE:
            raise _profile_not_found(buf)
        self._payload = bytearray(buf)
        return len(buf)


class OneByteHeaderExtension(_ElementExtension):
    """An RFC 8285 one-byte header extension block."""

    _PROFILE = EXTENSION_PROFILE_ONE_BYTE
    _HEADER_LEN = 1
    _MAX_ID = 14
    _MAX_SIZE = 16
    _NAME = "one byte"
    _STOP_ID = _RESERVED_ID

    def _parse_element(self, data: bytearray, pos: int) -> tuple[int, int]:
        byte = data[pos]
        return byte >> 4, (byte & 0x0F) + 1

    def _element_header(self, ext_id: int, size: int) -> bytes:
        return bytes([((ext_id << 4) | ((size - 1) & 0xFF)) & 0xFF])

    def set(self, ext_id: int, payload: bytes) -> None:
        super().set(ext_id, payload)

    def get_ids(self) -> list[int]:
        return super().get_ids()

    def get(self, ext_id: int) -> bytes | None:
        return super().get(ext_id)

    def delete(self, ext_id: int) -> None:
        super().delete(ext_id)

    def unmarshal(self, buf: bytes) -> int:
        return super().unmarshal(buf)


class TwoByteHeaderExtension(_ElementExtension):
    """An RFC 8285 two-byte header extension block."""

    _PROFILE = EXTENSION_PROFILE_TWO_BYTE
    _HEADER_LEN = 2
    _MAX_ID = 255
    _MAX_SIZE = 255
    _NAME = "two byte"

    def _parse_element(self, data: bytearray, pos: int) -> tuple[int, int]:
        if pos + 1 >= len(data):
            raise TooSmallError(f"extension element at {pos} has no length byte")
        return data[pos], data[pos + 1]

    def _element_header(self, ext_id: int, size: int) -> bytes:
        return bytes([ext_id & 0xFF, size & 0xFF])

    def set(self, ext_id: int, payload: bytes) -> None:
        super().set(ext_id, payload)

    def get_ids(self) -> list[int]:
        return super().get_ids()

    def get(self, ext_id: int) -> bytes | None:
        return super().get(ext_id)

    def delete(self, ext_id: int) -> None:
        super().delete(ext_id)

    def unmarshal(self, buf: bytes) -> int:
        return super().unmarshal(buf)


def _raw_id_error(ext_id: int) -> ExtensionIDRangeError:
    return ExtensionIDRangeError(
        f"header extension id must be 0 for non-RFC 8285 extensions actual({ext_id})"
    )


class RawExtension(HeaderExtension):
    """An RFC 3550 header extension, held as one opaque payload with ID 0."""

    def set(self, ext_id: int, payload: bytes) -> None:
        if ext_id != 0:
            raise _raw_id_error(ext_id)
        self._payload = bytearray(payload)

    def get_ids(self) -> list[int]:
        return [0]

    def get(self, ext_id: int) -> bytes | None:
        if ext_id == 0 and self._payload is not None:
            return bytes(self._payload)
        return None

    def delete(self, ext_id: int) -> None:
        if ext_id != 0:
            raise _raw_id_error(ext_id)
        self._payload = None

    def unmarshal(self, buf: bytes) -> int:
        if _read_profile(buf) in (EXTENSION_PROFILE_ONE_BYTE, EXTENSION_PROFILE_TWO_BYTE):
            raise _profile_not_found(buf)
        self._payload = bytearray(buf)
        return len(buf)