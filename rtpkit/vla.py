"""The Video Layers Allocation (VLA) RTP header extension."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import RTPError
from .leb128 import read_leb128, write_leb128

_MAX_STREAMS = 4
_MAX_SPATIAL_LAYERS = 4
_MAX_TEMPORAL_LAYERS = 4
_RESOLUTION_SIZE = 5


class VLAError(RTPError):
    """Base class for VLA errors."""


class VLATooShortError(VLAError):
    """The VLA payload is too short."""


class VLAInvalidStreamCountError(VLAError):
    """The RTP stream count is invalid."""


class VLAInvalidStreamIDError(VLAError):
    """The RTP stream ID is invalid."""


class VLAInvalidSpatialIDError(VLAError):
    """The spatial ID is invalid."""


class VLADuplicateSpatialIDError(VLAError):
    """A spatial layer appears twice for the same stream."""


class VLAInvalidTemporalLayerError(VLAError):
    """The number of temporal layers is invalid."""


@dataclass
class SpatialLayer:
    """One active spatial layer; width, height and framerate are optional data."""

    rtp_stream_id: int = 0
    spatial_id: int = 0
    target_bitrates: list[int] = field(default_factory=list)
    width: int = 0
    height: int = 0
    framerate: int = 0


def _common_bitmask(bitmasks: list[int]) -> int:
    common = 0
    for mask in bitmasks:
        if mask == 0:
            continue
        if common == 0:
            common = mask
            continue
        if mask != common:
            return 0
    return common


def _require(data: bytes, offset: int, count: int) -> None:
    if len(data) - offset < count:
        raise VLATooShortError(
            f"failed to unmarshal VLA (offset={offset}): VLA payload too short"
        )


@dataclass
class VLA:
    """A video layers allocation: the streams and their active spatial layers."""

    rtp_stream_id: int = 0
    rtp_stream_count: int = 0
    active_spatial_layer: list[SpatialLayer] = field(default_factory=list)
    has_resolution_and_framerate: bool = False

    def _analyze(self) -> tuple[list[int], list[SpatialLayer]]:
        """Validate and return the per-stream bitmasks and the layers in wire order."""
        if self.rtp_stream_count <= 0 or self.rtp_stream_count > _MAX_STREAMS:
            raise VLAInvalidStreamCountError("invalid RTP stream count in VLA")
        if self.rtp_stream_id < 0 or self.rtp_stream_id >= self.rtp_stream_count:
            raise VLAInvalidStreamIDError("invalid RTP stream ID in VLA")

        bitmasks = [0] * _MAX_STREAMS
        grid: dict[tuple[int, int], SpatialLayer] = {}
        for layer in self.active_spatial_layer:
            if layer.rtp_stream_id < 0 or layer.rtp_stream_id >= self.rtp_stream_count:
                raise VLAInvalidStreamIDError(
                    f"invalid RTP streamID {layer.rtp_stream_id}: invalid RTP stream ID in VLA"
                )
            if layer.spatial_id < 0 or layer.spatial_id >= _MAX_SPATIAL_LAYERS:
                raise VLAInvalidSpatialIDError(
                    f"invalid spatial ID {layer.spatial_id}: invalid spatial ID in VLA"
                )
            tl_count = len(layer.target_bitrates)
            if tl_count == 0 or tl_count > _MAX_TEMPORAL_LAYERS:
                raise VLAInvalidTemporalLayerError(
                    f"invalid temporal layer count {tl_count}: invalid temporal layer in VLA"
                )
            bitmasks[layer.rtp_stream_id] |= 1 << layer.spatial_id
            key = (layer.rtp_stream_id, layer.spatial_id)
            if key in grid:
                raise VLADuplicateSpatialIDError(
                    "duplicate spatial layer: duplicate spatial ID in VLA"
                )
            grid[key] = layer

        return bitmasks, [grid[key] for key in sorted(grid)]

    def marshal(self) -> bytes:
        """Encode the allocation into bytes."""
        bitmasks, ordered = self._analyze()
        common = _common_bitmask(bitmasks)
        count = self.rtp_stream_count

        layer_count = len(self.active_spatial_layer)
        tl_bytes = (layer_count + 3) // 4 if layer_count else 1
        encoded_bitrates = [
            write_leb128(kbps) for layer in ordered for kbps in layer.target_bitrates
        ]
        required = (1 if common else 3) + tl_bytes + sum(map(len, encoded_bitrates))
        if self.has_resolution_and_framerate:
            required += layer_count * _RESOLUTION_SIZE

        out = bytearray()
        out.append(((self.rtp_stream_id << 6) | ((count - 1) << 4) | common) & 0xFF)

        if common == 0:
            sl_bytes = bytearray((count - 1) // 2 + 1)
            for stream_id in range(count):
                shift = 4 if stream_id % 2 == 0 else 0
                sl_bytes[stream_id // 2] |= (bitmasks[stream_id] << shift) & 0xFF
            out += sl_bytes

        tl = bytearray(tl_bytes)
        for index, layer in enumerate(ordered):
            tl[index // 4] |= (len(layer.target_bitrates) - 1) << (2 * (3 - index % 4))
        out += tl

        for encoded in encoded_bitrates:
            out += encoded

        if self.has_resolution_and_framerate:
            for layer in self.active_spatial_layer:
                out += ((layer.width - 1) & 0xFFFF).to_bytes(2, "big")
                out += ((layer.height - 1) & 0xFFFF).to_bytes(2, "big")
                out.append(layer.framerate & 0xFF)

        # Space reserved for the per-stream bitmasks but not used stays zero at the end.
        out += bytes(required - len(out))
        return bytes(out)

    def unmarshal(self, payload: bytes) -> int:
        """Decode the allocation from payload and return the number of bytes read."""
        data = bytes(payload)
        offset = 0

        _require(data, offset, 1)
        first = data[offset]
        rtp_stream_id = (first >> 6) & 0b11
        rtp_stream_count = ((first >> 4) & 0b11) + 1
        bitmask_field = first & 0b1111
        offset += 1

        if bitmask_field:
            bitmasks = [bitmask_field] * rtp_stream_count
        else:
            bitmask_bytes = (rtp_stream_count - 1) // 2 + 1
            _require(data, offset, bitmask_bytes)
            bitmasks = [
                (data[offset + stream_id // 2] >> (4 if stream_id % 2 == 0 else 0)) & 0b1111
                for stream_id in range(rtp_stream_count)
            ]
            offset += bitmask_bytes

        _require(data, offset, 1)
        layers: list[SpatialLayer] = []
        tl_counts: list[int] = []
        tl_index = 0
        for stream_id in range(rtp_stream_count):
            for spatial_id in range(_MAX_SPATIAL_LAYERS):
                if not bitmasks[stream_id] & (1 << spatial_id):
                    continue
                if tl_index >= 4:
                    tl_index = 0
                    offset += 1
                    _require(data, offset, 1)
                tl_counts.append(((data[offset] >> (2 * (3 - tl_index))) & 0b11) + 1)
                tl_index += 1
                layers.append(SpatialLayer(rtp_stream_id=stream_id, spatial_id=spatial_id))
        offset += 1

        for layer, tl_count in zip(layers, tl_counts):
            bitrates = []
            for _ in range(tl_count):
                kbps, consumed = read_leb128(data[offset:])
                bitrates.append(kbps)
                offset += consumed
            layer.target_bitrates = bitrates

        has_resolution = offset != len(data)
        if has_resolution:
            _require(data, offset, len(layers) * _RESOLUTION_SIZE)
            for layer in layers:
                layer.width = int.from_bytes(data[offset : offset + 2], "big") + 1
                layer.height = int.from_bytes(data[offset + 2 : offset + 4], "big") + 1
                layer.framerate = data[offset + 4]
                offset += _RESOLUTION_SIZE

        self.rtp_stream_id = rtp_stream_id
        self.rtp_stream_count = rtp_stream_count
        self.active_spatial_layer = layers
        self.has_resolution_and_framerate = has_resolution
        return offset

    def __str__(self) -> str:
        parts = []
        for layer in self.active_spatial_layer:
            bitrates = " ".join(str(kbps) for kbps in layer.target_bitrates)
            text = f"RTPStreamID:{layer.rtp_stream_id},TargetBitrates:[{bitrates}]"
            if self.has_resolution_and_framerate:
                text += f",Resolution:({layer.width},{layer.height})"
                text += f",Framerate:{layer.framerate}"
            parts.append(text)
        return (
            f"RID:{self.rtp_stream_id},RTPStreamCount:{self.rtp_stream_count}"
            f",ActiveSpatialLayers:{{{','.join(parts)}}}"
        )