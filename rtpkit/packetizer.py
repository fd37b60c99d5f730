"""Splitting media payloads into RTP packets."""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod

from .packet import Header, Packet
from .sequencer import Sequencer

_RTP_HEADER_SIZE = 12
_PADDING_PACKET_SIZE = 255


class Payloader(ABC):
    """Splits a media frame into chunks that each fit one RTP payload."""

    @abstractmethod
    def payload(self, mtu: int, payload: bytes) -> list[bytes]:
        """Return the payload split into pieces of at most mtu bytes."""


class PartitionHeadChecker(ABC):
    """Tells whether an RTP payload starts a new partition (e.g. a frame)."""

    @abstractmethod
    def is_partition_head(self, payload: bytes) -> bool:
        """Return True if the payload begins a partition."""


class Packetizer:
    """Turns media payloads into RTP packets for one stream."""

    def __init__(
        self,
        mtu: int,
        payloader: Payloader,
        sequencer: Sequencer,
        clock_rate: int,
        *,
        payload_type: int = 0,
        ssrc: int = 0,
        timestamp: int | None = None,
    ) -> None:
        self.mtu = mtu
        self.payloader = payloader
        self.sequencer = sequencer
        self.clock_rate = clock_rate
        self.payload_type = payload_type
        self.ssrc = ssrc
        self.timestamp = secrets.randbits(32) if timestamp is None else timestamp & 0xFFFFFFFF

    def packetize(self, payload: bytes, samples: int) -> list[Packet]:
        """Split payload into packets and advance the timestamp by samples."""
        if not payload:
            return []

        chunks = self.payloader.payload((self.mtu - _RTP_HEADER_SIZE) & 0xFFFF, payload)
        last = len(chunks) - 1
        packets = [
            Packet(
                header=Header(
                    version=2,
                    marker=index == last,
                    payload_type=self.payload_type,
                    sequence_number=self.sequencer.next_sequence_number(),
                    timestamp=self.timestamp,
                    ssrc=self.ssrc,
                ),
                payload=bytes(chunk),
            )
            for index, chunk in enumerate(chunks)
        ]
        self.timestamp = (self.timestamp + samples) & 0xFFFFFFFF
        return packets

    def generate_padding(self, samples: int) -> list[Packet]:
        """Return samples padding-only packets at the current timestamp."""
        if samples == 0:
            return []

        padding = bytes(_PADDING_PACKET_SIZE - 1) + bytes([_PADDING_PACKET_SIZE])
        return [
            Packet(
                header=Header(
                    version=2,
                    padding=True,
                    payload_type=self.payload_type,
                    sequence_number=self.sequencer.next_sequence_number(),
                    timestamp=self.timestamp,
                    ssrc=self.ssrc,
                ),
                payload=padding,
            )
            for _ in range(samples)
        ]

    def skip_samples(self, skipped_samples: int) -> None:
        """Leave a gap of skipped_samples in the timestamps of later packets."""
        self.timestamp = (self.timestamp + skipped_samples) & 0xFFFFFFFF