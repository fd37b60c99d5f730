"""RTP packet and header parsing and serialization."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import (
    ExtensionIDRangeError,
    ExtensionSizeError,
    HeaderExtensionNotFoundError,
    HeaderExtensionsNotEnabledError,
    HeaderSizeInsufficientError,
    HeaderSizeInsufficientForExtensionError,
    InvalidPaddingError,
    ShortBufferError,
    TooSmallError,
)
from .header_extension import EXTENSION_PROFILE_ONE_BYTE, EXTENSION_PROFILE_TWO_BYTE

CRYPTEX_PROFILE_ONE_BYTE = 0xC0DE
CRYPTEX_PROFILE_TWO_BYTE = 0xC2DE

_HEADER_LENGTH = 4
_VERSION_SHIFT = 6
_VERSION_MASK = 0x3
_PADDING_SHIFT = 5
_EXTENSION_SHIFT = 4
_EXTENSION_ID_RESERVED = 0xF
_CC_MASK = 0xF
_MARKER_SHIFT = 7
_PT_MASK = 0x7F
_CSRC_OFFSET = 12
_CSRC_LENGTH = 4


@dataclass
class Extension:
    """A single RTP header extension element."""

    id: int
    payload: bytes = b""


@dataclass
class Header:
    """An RTP packet header."""

    version: int = 0
    padding: bool = False
    extension: bool = False
    marker: bool = False
    payload_type: int = 0
    sequence_number: int = 0
    timestamp: int = 0
    ssrc: int = 0
    csrc: list[int] = field(default_factory=list)
    extension_profile: int = 0
    extensions: list[Extension] = field(default_factory=list)
    # Carried in the last byte of the packet padding, but logically part of the header.
    padding_size: int = 0

    def unmarshal(self, buf: bytes) -> int:
        """Parse the header from buf and return the number of bytes read."""
        if len(buf) < _HEADER_LENGTH:
            raise HeaderSizeInsufficientError(
                f"RTP header size insufficient: {len(buf)} < {_HEADER_LENGTH}"
            )

        first = buf[0]
        self.version = (first >> _VERSION_SHIFT) & _VERSION_MASK
        self.padding = bool((first >> _PADDING_SHIFT) & 1)
        self.extension = bool((first >> _EXTENSION_SHIFT) & 1)
        n_csrc = first & _CC_MASK

        n = _CSRC_OFFSET + n_csrc * _CSRC_LENGTH
        if len(buf) < n:
            raise HeaderSizeInsufficientError(
                f"size {len(buf)} < {n}: RTP header size insufficient"
            )

        self.marker = bool((buf[1] >> _MARKER_SHIFT) & 1)
        self.payload_type = buf[1] & _PT_MASK
        self.sequence_number = int.from_bytes(buf[2:4], "big")
        self.timestamp = int.from_bytes(buf[4:8], "big")
        self.ssrc = int.from_bytes(buf[8:12], "big")
        self.csrc = [
            int.from_bytes(buf[offset : offset + _CSRC_LENGTH], "big")
            for offset in range(_CSRC_OFFSET, n, _CSRC_LENGTH)
        ]
        self.extensions = []

        if not self.extension:
            return n

        if len(buf) < n + 4:
            raise HeaderSizeInsufficientForExtensionError(
                f"size {len(buf)} < {n + 4}: RTP header size insufficient for extension"
            )
        self.extension_profile = int.from_bytes(buf[n : n + 2], "big")
        n += 2
        extension_length = int.from_bytes(buf[n : n + 2], "big") * 4
        n += 2
        extension_end = n + extension_length
        if len(buf) < extension_end:
            raise HeaderSizeInsufficientForExtensionError(
                f"size {len(buf)} < {extension_end}: RTP header size insufficient for extension"
            )

        if self.extension_profile in (EXTENSION_PROFILE_ONE_BYTE, EXTENSION_PROFILE_TWO_BYTE):
            while n < extension_end:
                if buf[n] == 0x00:
                    n += 1
                    continue
                if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
                    ext_id = buf[n] >> 4
                    payload_len = (buf[n] & 0x0F) + 1
                    n += 1
                    if ext_id == _EXTENSION_ID_RESERVED:
                        break
                else:
                    ext_id = buf[n]
                    n += 1
                    if len(buf) <= n:
                        raise HeaderSizeInsufficientForExtensionError(
                            f"size {len(buf)} < {n}: RTP header size insufficient for extension"
                        )
                    payload_len = buf[n]
                    n += 1
                payload_end = n + payload_len
                if len(buf) <= payload_end:
                    raise HeaderSizeInsufficientForExtensionError(
                        f"size {len(buf)} < {payload_end}: "
                        "RTP header size insufficient for extension"
                    )
                self.extensions.append(Extension(ext_id, bytes(buf[n:payload_end])))
                n = payload_end
        else:
            self.extensions.append(Extension(0, bytes(buf[n:extension_end])))
            n = extension_end

        return n

    def _raw_extension_payload(self) -> bytes:
        return self.extensions[0].payload if self.extensions else b""

    def marshal_size(self) -> int:
        """Return the size of the header once serialized."""
        size = 12 + len(self.csrc) * _CSRC_LENGTH
        if self.extension:
            ext_size = 4
            if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
                ext_size += sum(1 + len(e.payload) for e in self.extensions)
            elif self.extension_profile == EXTENSION_PROFILE_TWO_BYTE:
                ext_size += sum(2 + len(e.payload) for e in self.extensions)
            else:
                ext_size += len(self._raw_extension_payload())
            size += ((ext_size + 3) // 4) * 4
        return size

    def marshal_to(self, buf: bytearray | memoryview) -> int:
        """Serialize the header into buf and return the number of bytes written."""
        size = self.marshal_size()
        if size > len(buf):
            raise ShortBufferError(f"buffer of {len(buf)} bytes, need {size}")

        first = ((self.version << _VERSION_SHIFT) | len(self.csrc)) & 0xFF
        if self.padding:
            first |= 1 << _PADDING_SHIFT
        if self.extension:
            first |= 1 << _EXTENSION_SHIFT
        buf[0] = first

        second = self.payload_type & 0xFF
        if self.marker:
            second |= 1 << _MARKER_SHIFT
        buf[1] = second

        buf[2:4] = (self.sequence_number & 0xFFFF).to_bytes(2, "big")
        buf[4:8] = (self.timestamp & 0xFFFFFFFF).to_bytes(4, "big")
        buf[8:12] = (self.ssrc & 0xFFFFFFFF).to_bytes(4, "big")

        n = 12
        for csrc in self.csrc:
            buf[n : n + 4] = (csrc & 0xFFFFFFFF).to_bytes(4, "big")
            n += 4

        if not self.extension:
            return n

        ext_header_pos = n
        buf[n : n + 2] = (self.extension_profile & 0xFFFF).to_bytes(2, "big")
        n += 4
        start = n

        if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
            for ext in self.extensions:
                buf[n] = ((ext.id << 4) | ((len(ext.payload) - 1) & 0xFF)) & 0xFF
                n += 1
                buf[n : n + len(ext.payload)] = ext.payload
                n += len(ext.payload)
        elif self.extension_profile == EXTENSION_PROFILE_TWO_BYTE:
            for ext in self.extensions:
                buf[n] = ext.id & 0xFF
                buf[n + 1] = len(ext.payload) & 0xFF
                n += 2
                buf[n : n + len(ext.payload)] = ext.payload
                n += len(ext.payload)
        else:
            raw = self._raw_extension_payload()
            if len(raw) % 4 != 0:
                # RFC 3550 extension payloads must be whole 32-bit words.
                raise ShortBufferError(
                    f"extension payload of {len(raw)} bytes is not a multiple of 4"
                )
            buf[n : n + len(raw)] = raw
            n += len(raw)

        ext_size = n - start
        rounded = ((ext_size + 3) // 4) * 4
        buf[ext_header_pos + 2 : ext_header_pos + 4] = ((rounded // 4) & 0xFFFF).to_bytes(
            2, "big"
        )
        pad = rounded - ext_size
        buf[n : n + pad] = bytes(pad)
        return n + pad

    def marshal(self) -> bytes:
        """Serialize the header into bytes."""
        buf = bytearray(self.marshal_size())
        n = self.marshal_to(buf)
        return bytes(buf[:n])

    def set_extension(self, ext_id: int, payload: bytes) -> None:
        """Set or replace the header extension with the given ID."""
        payload = bytes(payload)
        if self.extension:
            if self.extension_profile == EXTENSION_PROFILE_ONE_BYTE:
                if ext_id < 1 or ext_id > 14:
                    raise ExtensionIDRangeError(
                        f"header extension id must be between 1 and 14 for RFC 8285 "
                        f"one byte extensions actual({ext_id})"
                    )
                if len(payload) > 16:
                    raise ExtensionSizeError(
                        f"header extension payload must be 16 bytes or less for RFC 8285 "
                        f"one byte extensions actual({len(payload)})"
                    )
            elif self.extension_profile == EXTENSION_PROFILE_TWO_BYTE:
                if ext_id < 1:
                    raise ExtensionIDRangeError(
                        f"header extension id must be between 1 and 255 for RFC 8285 "
                        f"two byte extensions actual({ext_id})"
                    )
                if len(payload) > 255:
                    raise ExtensionSizeError(
                        f"header extension payload must be 255 bytes or less for RFC 8285 "
                        f"two byte extensions actual({len(payload)})"
                    )
            elif ext_id != 0:
                raise ExtensionIDRangeError(
                    f"header extension id must be 0 for non-RFC 8285 extensions actual({ext_id})"
                )

            for ext in self.extensions:
                if ext.id == ext_id:
                    ext.payload = payload
                    return
            self.extensions.append(Extension(ext_id, payload))
            return

        self.extension = True
        if len(payload) <= 16:
            self.extension_profile = EXTENSION_PROFILE_ONE_BYTE
        elif len(payload) < 256:
            self.extension_profile = EXTENSION_PROFILE_TWO_BYTE
        self.extensions.append(Extension(ext_id, payload))

    def get_extension_ids(self) -> list[int]:
        """Return the IDs of the header extensions, empty if none."""
        if not self.extension:
            return []
        return [ext.id for ext in self.extensions]

    def get_extension(self, ext_id: int) -> bytes | None:
        """Return the payload of the extension with the given ID, or None."""
        if not self.extension:
            return None
        return next((ext.payload for ext in self.extensions if ext.id == ext_id), None)

    def del_extension(self, ext_id: int) -> None:
        """Remove the extension with the given ID."""
        if not self.extension:
            raise HeaderExtensionsNotEnabledError("h.Extension not enabled")
        for index, ext in enumerate(self.extensions):
            if ext.id == ext_id:
                del self.extensions[index]
                return
        raise HeaderExtensionNotFoundError("extension not found")

    def clone(self) -> Header:
        """Return a deep copy of the header."""
        return Header(
            version=self.version,
            padding=self.padding,
            extension=self.extension,
            marker=self.marker,
            payload_type=self.payload_type,
            sequence_number=self.sequence_number,
            timestamp=self.timestamp,
            ssrc=self.ssrc,
            csrc=list(self.csrc),
            extension_profile=self.extension_profile,
            extensions=[Extension(e.id, bytes(e.payload)) for e in self.extensions],
            padding_size=self.padding_size,
        )


def _marshal_payload_and_padding_to(
    buf: bytearray | memoryview, offset: int, header: Header, payload: bytes, padding_size: int
) -> int:
    end = offset + len(payload) + padding_size
    if end > len(buf):
        raise ShortBufferError(f"buffer of {len(buf)} bytes, need {end}")
    buf[offset : offset + len(payload)] = payload
    if header.padding and padding_size > 0:
        pad_start = offset + len(payload)
        buf[pad_start : end - 1] = bytes(padding_size - 1)
        buf[end - 1] = padding_size & 0xFF
    return end


@dataclass
class Packet:
    """An RTP packet: a header followed by a payload and optional padding."""

    header: Header = field(default_factory=Header)
    payload: bytes = b""
    # Older location of the padding size; header.padding_size takes precedence.
    padding_size: int = 0

    def _padding_size(self) -> int:
        if self.header.padding_size > 0:
            return self.header.padding_size
        return self.padding_size

    def unmarshal(self, buf: bytes) -> None:
        """Parse a full RTP packet from buf."""
        n = self.header.unmarshal(buf)
        end = len(buf)
        if self.header.padding:
            if end <= n:
                raise TooSmallError("buffer too small")
            self.header.padding_size = buf[end - 1]
            end -= self.header.padding_size
        else:
            self.header.padding_size = 0
        self.padding_size = self.header.padding_size
        if end < n:
            raise TooSmallError("buffer too small")
        self.payload = bytes(buf[n:end])

    def marshal_size(self) -> int:
        """Return the size of the packet once serialized."""
        return self.header.marshal_size() + len(self.payload) + self._padding_size()

    def marshal_to(self, buf: bytearray | memoryview) -> int:
        """Serialize the packet into buf and return the number of bytes written."""
        padding_size = self._padding_size()
        if self.header.padding and padding_size == 0:
            raise InvalidPaddingError("invalid RTP padding")
        n = self.header.marshal_to(buf)
        return _marshal_payload_and_padding_to(buf, n, self.header, self.payload, padding_size)

    def marshal(self) -> bytes:
        """Serialize the packet into bytes."""
        buf = bytearray(self.marshal_size())
        n = self.marshal_to(buf)
        return bytes(buf[:n])

    def clone(self) -> Packet:
        """Return a deep copy of the packet."""
        return Packet(
            header=self.header.clone(),
            payload=bytes(self.payload),
            padding_size=self.padding_size,
        )

    def set_extension(self, ext_id: int, payload: bytes) -> None:
        """Set or replace the header extension with the given ID."""
        self.header.set_extension(ext_id, payload)

    def get_extension_ids(self) -> list[int]:
        """Return the IDs of the header extensions."""
        return self.header.get_extension_ids()

    def get_extension(self, ext_id: int) -> bytes | None:
        """Return the payload of the extension with the given ID, or None."""
        return self.header.get_extension(ext_id)

    def del_extension(self, ext_id: int) -> None:
        """Remove the header extension with the given ID."""
        self.header.del_extension(ext_id)

    def __str__(self) -> str:
        h = self.header
        return (
            "RTP PACKET:\n"
            f"\tVersion: {h.version}\n"
            f"\tMarker: {str(h.marker).lower()}\n"
            f"\tPayload Type: {h.payload_type}\n"
            f"\tSequence Number: {h.sequence_number}\n"
            f"\tTimestamp: {h.timestamp}\n"
            f"\tSSRC: {h.ssrc} ({h.ssrc:x})\n"
            f"\tPayload Length: {len(self.payload)}\n"
        )


def marshal_packet_to(buf: bytearray | memoryview, header: Header, payload: bytes) -> int:
    """Serialize a header and a separate payload into buf; return bytes written."""
    n = header.marshal_to(buf)
    return _marshal_payload_and_padding_to(buf, n, header, payload, header.padding_size)


def packet_marshal_size(header: Header, payload: bytes) -> int:
    """Return the serialized size of a header plus a separate payload."""
    return header.marshal_size() + len(payload) + header.padding_size


def header_and_packet_marshal_size(header: Header, payload: bytes) -> tuple[int, int]:
    """Return the serialized header size and the full packet size."""
    header_size = header.marshal_size()
    return header_size, header_size + len(payload) + header.padding_size