"""Packet variants and the binary batch codec.

All integers are little-endian.

Batch layout:

  header  (13 bytes)
    0x00  magic        "FLWW"
    0x04  version      u8   (currently 1)
    0x05  count        u32  number of packets
    0x09  payload_len  u32  bytes following the header, at most
                            MAX_PAYLOAD_SIZE

  packet  tag u8, then
    0x01  Msg    len u32 + UTF-8 text
    0x02  Track  len u32 + UTF-8 name
    0x03  Point  id u64, time f64, note f64, velocity f64  (32 bytes)

Floats are stored as f64 so a batch round-trips Python floats exactly.
A batch is self-delimiting: ``batch_size`` can tell from the header alone
how many bytes to wait for, which is what lets the streaming decoder
reassemble fragmented input.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from .errors import PacketDecodeError, PacketEncodeError
from .point import Point


MAGIC = b"FLWW"
VERSION = 1
HEADER = struct.Struct("<4sBII")
HEADER_SIZE = HEADER.size
MAX_PAYLOAD_SIZE = 16 * 1024 * 1024

TAG_MSG = 0x01
TAG_TRACK = 0x02
TAG_POINT = 0x03

_LEN = struct.Struct("<I")
_POINT = struct.Struct("<Qddd")


@dataclass(frozen=True)
class Msg:
    """Out-of-band text annotation; not tied to any track."""

    text: str


@dataclass(frozen=True)
class Track:
    """Selects the destination for the points that follow."""

    name: str


@dataclass(frozen=True)
class PointPacket:
    point: Point


Packet = Union[Msg, Track, PointPacket]


def _encode_text(buf: bytearray, tag: int, text: str) -> None:
    raw = text.encode("utf-8")
    buf.append(tag)
    buf.extend(_LEN.pack(len(raw)))
    buf.extend(raw)


def encode(packets: Iterable[Packet]) -> bytes:
    """Serialize packets into one batch.

    Raises
    ------
    PacketEncodeError
        On anything that is not a well-formed packet (unknown object,
        negative or oversized id, text that is not encodable).
    """
    payload = bytearray()
    count = 0
    for packet in packets:
        try:
            if isinstance(packet, Msg):
                _encode_text(payload, TAG_MSG, packet.text)
            elif isinstance(packet, Track):
                _encode_text(payload, TAG_TRACK, packet.name)
            elif isinstance(packet, PointPacket):
                payload.append(TAG_POINT)
                payload.extend(_POINT.pack(*packet.point.as_tuple()))
            else:
                raise PacketEncodeError(f"not a packet: {packet!r}")
        except (struct.error, UnicodeEncodeError, AttributeError, TypeError) as exc:
            raise PacketEncodeError(f"cannot encode packet #{count}: {packet!r}") from exc
        count += 1
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise PacketEncodeError(
            f"batch payload of {len(payload)} bytes exceeds {MAX_PAYLOAD_SIZE}"
        )
    return HEADER.pack(MAGIC, VERSION, count, len(payload)) + bytes(payload)


def _read_header(data: bytes) -> tuple[int, int]:
    magic, version, count, payload_len = HEADER.unpack_from(data, 0)
    if magic != MAGIC:
        raise PacketDecodeError(f"bad magic: {bytes(data[:4]).hex()}")
    if version != VERSION:
        raise PacketDecodeError(f"unsupported version {version}")
    if payload_len > MAX_PAYLOAD_SIZE:
        raise PacketDecodeError(
            f"payload length {payload_len} exceeds {MAX_PAYLOAD_SIZE}"
        )
    return count, payload_len


def batch_size(data: bytes) -> Optional[int]:
    """Return the full size of the batch starting at ``data``.

    ``None`` means the header itself is not complete yet.  A header that is
    present but invalid raises ``PacketDecodeError``.
    """
    if len(data) < HEADER_SIZE:
        return None
    _, payload_len = _read_header(data)
    return HEADER_SIZE + payload_len


def _read_text(data: bytes, pos: int, end: int) -> tuple[str, int]:
    if pos + _LEN.size > end:
        raise PacketDecodeError(f"truncated length at offset {pos}")
    (length,) = _LEN.unpack_from(data, pos)
    pos += _LEN.size
    if pos + length > end:
        raise PacketDecodeError(
            f"text of {length} bytes at offset {pos} runs past end of batch"
        )
    try:
        text = bytes(data[pos : pos + length]).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PacketDecodeError(f"invalid UTF-8 at offset {pos}") from exc
    return text, pos + length


def decode(data: bytes) -> List[Packet]:
    """Parse exactly one batch.

    The batch must span all of ``data``; trailing bytes are an error.
    """
    size = batch_size(data)
    if size is None:
        raise PacketDecodeError(
            f"data too short for header ({len(data)} bytes, need {HEADER_SIZE})"
        )
    if size != len(data):
        raise PacketDecodeError(
            f"batch declares {size} bytes but {len(data)} were given"
        )
    count, _ = _read_header(data)

    packets: List[Packet] = []
    pos = HEADER_SIZE
    end = len(data)
    while pos < end:
        tag = data[pos]
        pos += 1
        if tag == TAG_MSG:
            text, pos = _read_text(data, pos, end)
            packets.append(Msg(text))
        elif tag == TAG_TRACK:
            name, pos = _read_text(data, pos, end)
            packets.append(Track(name))
        elif tag == TAG_POINT:
            if pos + _POINT.size > end:
                raise PacketDecodeError(f"truncated point at offset {pos}")
            packets.append(PointPacket(Point(*_POINT.unpack_from(data, pos))))
            pos += _POINT.size
        else:
            raise PacketDecodeError(f"unknown packet tag 0x{tag:02X} at offset {pos - 1}")

    if len(packets) != count:
        raise PacketDecodeError(
            f"header declares {count} packets, found {len(packets)}"
        )
    return packets
