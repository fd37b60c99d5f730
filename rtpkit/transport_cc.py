"""The transport-wide congestion control sequence number extension payload."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import TooSmallError

_EXTENSION_SIZE = 2


@dataclass
class TransportCCExtension:
    """A 16-bit transport-wide sequence number."""

    transport_sequence: int = 0

    def marshal(self) -> bytes:
        """Serialize the sequence number as two big-endian bytes."""
        return (self.transport_sequence & 0xFFFF).to_bytes(_EXTENSION_SIZE, "big")

    def unmarshal(self, raw_data: bytes) -> None:
        """Parse the sequence number; extra trailing bytes are ignored."""
        if len(raw_data) < _EXTENSION_SIZE:
            raise TooSmallError("buffer too small")
        self.transport_sequence = int.from_bytes(raw_data[0:2], "big")