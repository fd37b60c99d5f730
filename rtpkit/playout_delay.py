"""The playout-delay RTP header extension payload."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import RTPError, TooSmallError

_EXTENSION_SIZE = 3
_MAX_VALUE = (1 << 12) - 1


class PlayoutDelayError(RTPError):
    """A playout delay value does not fit in 12 bits."""


@dataclass
class PlayoutDelayExtension:
    """Minimum and maximum playout delay, each a 12-bit value."""

    min_delay: int = 0
    max_delay: int = 0

    def marshal(self) -> bytes:
        """Serialize the two delays into three bytes."""
        if self.min_delay > _MAX_VALUE or self.max_delay > _MAX_VALUE:
            raise PlayoutDelayError("invalid playout delay value")
        return bytes([
            (self.min_delay >> 4) & 0xFF,
            ((self.min_delay << 4) & 0xFF) | ((self.max_delay >> 8) & 0xFF),
            self.max_delay & 0xFF,
        ])

    def unmarshal(self, raw_data: bytes) -> None:
        """Parse the delays from raw_data; extra trailing bytes are ignored."""
        if len(raw_data) < _EXTENSION_SIZE:
            raise TooSmallError("buffer too small")
        self.min_delay = int.from_bytes(raw_data[0:2], "big") >> 4
        self.max_delay = int.from_bytes(raw_data[1:3], "big") & 0x0FFF