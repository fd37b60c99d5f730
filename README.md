# rtpkit

Tools for working with RTP (Real-time Transport Protocol) packets, in pure
Python with no dependencies:

- `rtpkit.packet`: parse and serialize RTP packets and headers (RFC 3550),
  including CSRC lists, padding and header extensions (`Packet`, `Header`,
  `Extension`);
- `rtpkit.header_extension`: RFC 8285 one-byte and two-byte header extension
  blocks and raw RFC 3550 extensions, edited in their wire form
  (`OneByteHeaderExtension`, `TwoByteHeaderExtension`, `RawExtension`);
- extension payloads for transport-wide congestion control
  (`rtpkit.transport_cc.TransportCCExtension`), playout delay
  (`rtpkit.playout_delay.PlayoutDelayExtension`) and Video Layers Allocation
  (`rtpkit.vla.VLA`, `rtpkit.vla.SpatialLayer`);
- `rtpkit.packetizer`: a `Packetizer` that splits media frames into RTP
  packets by way of a `Payloader` you supply;
- `rtpkit.sequencer`: a thread-safe `Sequencer` of 16-bit sequence numbers
  that counts rollovers (`fixed_sequencer`, `random_sequencer`);
- `rtpkit.leb128`: LEB128 helpers (`encode_leb128`, `write_leb128`,
  `read_leb128`);
- `rtpkit.payload_types.PayloadType`: the static IANA payload type numbers.

All errors are raised as subclasses of `rtpkit.errors.RTPError`, which is
itself a `ValueError`: for example `HeaderSizeInsufficientError`,
`HeaderSizeInsufficientForExtensionError`, `TooSmallError`,
`ShortBufferError` or `HeaderExtensionNotFoundError`.

## Installation

```
pip install rtpkit
```

## Parsing and building packets

```python
from rtpkit.packet import Packet

packet = Packet()
packet.unmarshal(raw_bytes)
print(packet.header.sequence_number, packet.header.timestamp, packet.header.ssrc)
print(packet.payload, packet.get_extension(1))

packet.set_extension(2, b"\x00\x01")
wire = packet.marshal()
```

`Header.unmarshal` parses a header alone and returns the number of bytes it
read. `marshal_to` writes into a `bytearray` you provide and returns the
number of bytes written; it raises `ShortBufferError` if the buffer is too
small. `clone()` returns a deep copy.

When a header has no extensions yet, `set_extension` turns them on and picks
the one-byte profile for payloads of up to 16 bytes, otherwise the two-byte
profile. `get_extension_ids`, `get_extension` and `del_extension` work on the
extension list.

For a header and payload held apart, `marshal_packet_to`,
`packet_marshal_size` and `header_and_packet_marshal_size` serialize or size
them together.

## Header extension blocks

```python
from rtpkit.header_extension import OneByteHeaderExtension

ext = OneByteHeaderExtension()
ext.unmarshal(b"\xbe\xde\x00\x00")
ext.set(1, b"\xbb")
assert ext.get(1) == b"\xbb"
ext.delete(1)
```

## Extension payloads

```python
from rtpkit.playout_delay import PlayoutDelayExtension
from rtpkit.transport_cc import TransportCCExtension

delay = PlayoutDelayExtension(min_delay=16, max_delay=256)
assert delay.marshal() == b"\x01\x01\x00"

cc = TransportCCExtension()
cc.unmarshal(b"\x00\x02")
assert cc.transport_sequence == 2
```

## Packetizing

```python
from rtpkit.packetizer import Packetizer, Payloader
from rtpkit.sequencer import fixed_sequencer


class ChunkPayloader(Payloader):
    def payload(self, mtu, payload):
        return [payload[i:i + mtu] for i in range(0, len(payload), mtu)]


packetizer = Packetizer(
    mtu=1200,
    payloader=ChunkPayloader(),
    sequencer=fixed_sequencer(1000),
    clock_rate=90000,
    payload_type=96,
    ssrc=0x1234ABCD,
)
packets = packetizer.packetize(frame_bytes, samples=3000)
```

The payloader is given the MTU less the 12-byte RTP header. The last packet
of each frame has its marker bit set, and after every call the timestamp moves
forward by `samples`. If no `timestamp` is given, a random starting timestamp
is chosen. `generate_padding(n)` returns `n` padding-only packets at the
current timestamp, and `skip_samples(n)` leaves a gap in the timestamps.

## Video Layers Allocation

```python
from rtpkit.vla import VLA, SpatialLayer

vla = VLA(
    rtp_stream_id=0,
    rtp_stream_count=1,
    active_spatial_layer=[SpatialLayer(rtp_stream_id=0, spatial_id=0, target_bitrates=[300])],
)
data = vla.marshal()

decoded = VLA()
decoded.unmarshal(data)
```

## What is not included

- No payloaders for particular codecs: `Payloader` and `PartitionHeadChecker`
  are abstract base classes you implement yourself.
- No depacketizing or frame reassembly, and no network I/O: the package works
  on bytes only.
- `Packetizer` does not add an absolute-send-time extension.

## Running the tests

```
pip install -e ".[test]"
pytest
```