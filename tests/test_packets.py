from __future__ import annotations

from pathlib import Path
import struct
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from floww.errors import PacketDecodeError, PacketEncodeError  # noqa: E402
from floww.packets import (  # noqa: E402
    HEADER,
    HEADER_SIZE,
    MAGIC,
    MAX_PAYLOAD_SIZE,
    VERSION,
    Msg,
    PointPacket,
    Track,
    batch_size,
    decode,
    encode,
)
from floww.point import Point  # noqa: E402


MIXED = [
    Msg("beat"),
    Track("snare"),
    PointPacket(Point(0, 0.0, 0.25, 1.0)),
    PointPacket(Point(38, 0.1 + 0.2, 38.0, 100 / 127)),
    Msg(""),
    Track("hi-hat ♯ 🥁"),
    PointPacket(Point(2**64 - 1, 1e300, -0.0, 0.0)),
    Track(""),
]


def test_roundtrip_mixed_batch() -> None:
    assert decode(encode(MIXED)) == MIXED


def test_roundtrip_empty_batch() -> None:
    data = encode([])
    assert len(data) == HEADER_SIZE
    assert decode(data) == []


def test_header_layout() -> None:
    data = encode([Msg("hi"), PointPacket(Point(1, 0.5, 60.0, 1.0))])
    magic, version, count, payload_len = HEADER.unpack_from(data, 0)
    assert magic == MAGIC == b"FLWW"
    assert version == VERSION
    assert count == 2
    # msg: tag + u32 + 2 bytes; point: tag + 32 bytes
    assert payload_len == (1 + 4 + 2) + (1 + 32)
    assert len(data) == HEADER_SIZE + payload_len
    assert data[HEADER_SIZE : HEADER_SIZE + 7] == b"\x01\x02\x00\x00\x00hi"
    assert data[HEADER_SIZE + 7] == 0x03
    assert struct.unpack_from("<Qddd", data, HEADER_SIZE + 8) == (1, 0.5, 60.0, 1.0)


def test_batch_size() -> None:
    data = encode(MIXED)
    assert batch_size(data) == len(data)
    assert batch_size(data + b"next batch") == len(data)
    assert batch_size(data[: HEADER_SIZE - 1]) is None


def test_batch_size_rejects_bad_header() -> None:
    with pytest.raises(PacketDecodeError, match="magic"):
        batch_size(b"XXXX" + bytes(HEADER_SIZE))
    bad_version = bytearray(encode([]))
    bad_version[4] = 99
    with pytest.raises(PacketDecodeError, match="version"):
        batch_size(bytes(bad_version))


def test_decode_rejects_truncation() -> None:
    data = encode(MIXED)
    for cut in (0, 3, HEADER_SIZE, len(data) - 1):
        with pytest.raises(PacketDecodeError):
            decode(data[:cut])


def test_decode_rejects_trailing_bytes() -> None:
    with pytest.raises(PacketDecodeError, match="declares"):
        decode(encode([Msg("a")]) + b"\x00")


def test_decode_rejects_unknown_tag() -> None:
    data = HEADER.pack(MAGIC, VERSION, 1, 1) + b"\x7f"
    with pytest.raises(PacketDecodeError, match="tag 0x7F"):
        decode(data)


def test_decode_rejects_count_mismatch() -> None:
    data = bytearray(encode([Msg("a")]))
    data[5:9] = (2).to_bytes(4, "little")
    with pytest.raises(PacketDecodeError, match="2 packets"):
        decode(bytes(data))


def test_decode_rejects_text_past_end() -> None:
    payload = b"\x02" + (10).to_bytes(4, "little") + b"abc"
    data = HEADER.pack(MAGIC, VERSION, 1, len(payload)) + payload
    with pytest.raises(PacketDecodeError, match="runs past end"):
        decode(data)


def test_decode_rejects_invalid_utf8() -> None:
    payload = b"\x01" + (1).to_bytes(4, "little") + b"\xff"
    data = HEADER.pack(MAGIC, VERSION, 1, len(payload)) + payload
    with pytest.raises(PacketDecodeError, match="UTF-8"):
        decode(data)


def test_decode_rejects_truncated_point() -> None:
    payload = b"\x03" + bytes(31)
    data = HEADER.pack(MAGIC, VERSION, 1, len(payload)) + payload
    with pytest.raises(PacketDecodeError, match="truncated point"):
        decode(data)


@pytest.mark.parametrize(
    "packet",
    [
        PointPacket(Point(-1, 0.0, 60.0, 1.0)),
        PointPacket(Point(2**64, 0.0, 60.0, 1.0)),
        Msg("\ud800"),
        "not a packet",
    ],
)
def test_encode_failure_is_a_programming_error(packet: object) -> None:
    with pytest.raises(PacketEncodeError):
        encode([Msg("ok"), packet])  # type: ignore[list-item]


def test_oversized_payload_length_is_rejected_from_header() -> None:
    header = HEADER.pack(MAGIC, VERSION, 1, MAX_PAYLOAD_SIZE + 1)
    with pytest.raises(PacketDecodeError, match="exceeds"):
        batch_size(header)
    assert batch_size(HEADER.pack(MAGIC, VERSION, 0, MAX_PAYLOAD_SIZE)) == HEADER_SIZE + MAX_PAYLOAD_SIZE


def test_encode_refuses_oversized_batch() -> None:
    with pytest.raises(PacketEncodeError, match="exceeds"):
        encode([Msg("x" * MAX_PAYLOAD_SIZE)])
