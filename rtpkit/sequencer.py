"""Generation of consecutive 16-bit RTP sequence numbers."""

from __future__ import annotations

import secrets
import threading

# Only half the sequence number space is used for a random start, so that
# SRTP decryption does not trip over an early rollover when packets are lost.
_MAX_INITIAL_RANDOM_SEQUENCE_NUMBER = (1 << 15) - 1


class Sequencer:
    """Thread-safe source of sequence numbers that counts its rollovers."""

    def __init__(self, start: int = 0) -> None:
        """Create a sequencer whose first number is start (taken modulo 2**16)."""
        # Hold the number before the first one, since each call increments first.
        self._sequence_number = (start - 1) & 0xFFFF
        self._roll_over_count = 0
        self._lock = threading.Lock()

    def next_sequence_number(self) -> int:
        """Advance and return the next sequence number."""
        with self._lock:
            self._sequence_number = (self._sequence_number + 1) & 0xFFFF
            if self._sequence_number == 0:
                self._roll_over_count += 1
            return self._sequence_number

    def roll_over_count(self) -> int:
        """Return how many times the 16-bit sequence number has wrapped."""
        with self._lock:
            return self._roll_over_count


def random_sequencer() -> Sequencer:
    """Return a sequencer starting from a random number in the lower half of the space."""
    return Sequencer(secrets.randbelow(_MAX_INITIAL_RANDOM_SEQUENCE_NUMBER) + 1)


def fixed_sequencer(start: int) -> Sequencer:
    """Return a sequencer whose first number is start."""
    return Sequencer(start)