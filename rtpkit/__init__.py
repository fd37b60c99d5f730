"""RTP packets and headers, header extensions, sequencing and packetization."""

__version__ = "0.1.0"