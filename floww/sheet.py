"""Named registry of timelines.

A sheet keeps three structures in step: the ordered track names, the
timelines at the same positions, and a name -> position index.  Positions
are assigned on ``add`` and never change, which is what lets a
``StreamDecoder`` route points by index.

Persisted form
--------------
A sheet is stored as a single packet batch (see ``floww.packets``): for each
track, a ``Track`` packet with its name followed by its points.  Every
name/timeline pair is delimited by the packets themselves.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

from .errors import PacketDecodeError
from .packets import Msg, Packet, PointPacket, Track, decode, encode
from .point import Point
from .timeline import Timeline


class Sheet:
    def __init__(self) -> None:
        self._names: List[str] = []
        self._timelines: List[Timeline] = []
        self._index: Dict[str, int] = {}

    def add(self, timeline: Iterable[Point], name: str) -> int:
        """Append ``timeline`` under ``name`` and return its index.

        Names must be unique; adding a name twice is not detected.
        """
        idx = len(self._timelines)
        self._names.append(name)
        self._timelines.append(
            timeline if isinstance(timeline, Timeline) else Timeline(timeline)
        )
        self._index[name] = idx
        return idx

    def get_by_name(self, name: str) -> Tuple[Point, ...]:
        idx = self._index.get(name)
        if idx is None:
            return ()
        return tuple(self._timelines[idx])

    def get_names(self) -> List[str]:
        return list(self._names)

    def reset(self, name: str, timeline: Iterable[Point]) -> bool:
        """Replace the points stored under ``name``, keeping its index."""
        idx = self._index.get(name)
        if idx is None:
            return False
        self._timelines[idx][:] = list(timeline)
        return True

    @property
    def index(self) -> Mapping[str, int]:
        return MappingProxyType(self._index)

    @property
    def timelines(self) -> Sequence[Timeline]:
        """Destination list for ``StreamDecoder``, indexed like ``index``."""
        return self._timelines

    def to_packets(self) -> List[Packet]:
        """Flatten into ``Track`` + ``PointPacket`` packets and empty the sheet.

        Points are emitted in their current order; sort the timelines first
        if the receiver needs them chronological.
        """
        packets: List[Packet] = []
        for name, timeline in zip(self._names, self._timelines):
            packets.append(Track(name))
            packets.extend(PointPacket(point) for point in timeline)
        self._names = []
        self._timelines = []
        self._index = {}
        return packets

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Tuple[str, Timeline]]:
        return iter(zip(list(self._names), list(self._timelines)))

    def __repr__(self) -> str:
        counts = ", ".join(f"{n}={len(t)}" for n, t in zip(self._names, self._timelines))
        return f"Sheet({counts})"


def sheet_from_packets(packets: Iterable[Packet]) -> Sheet:
    """Rebuild a sheet from a ``to_packets`` sequence.

    Messages are skipped.  A point that arrives before any ``Track`` packet
    raises ``PacketDecodeError``.
    """
    sheet = Sheet()
    current: Timeline | None = None
    for packet in packets:
        if isinstance(packet, Track):
            current = Timeline()
            sheet.add(current, packet.name)
        elif isinstance(packet, PointPacket):
            if current is None:
                raise PacketDecodeError("point packet before any track")
            current.append(packet.point)
        elif isinstance(packet, Msg):
            continue
    return sheet


def dump_sheet(sheet: Sheet) -> bytes:
    """Serialize ``sheet``; the sheet is drained like ``to_packets``."""
    return encode(sheet.to_packets())


def load_sheet(data: bytes) -> Sheet:
    return sheet_from_packets(decode(data))


def save_sheet(sheet: Sheet, path: Union[str, Path]) -> None:
    Path(path).write_bytes(dump_sheet(sheet))


def load_sheet_file(path: Union[str, Path]) -> Sheet:
    return load_sheet(Path(path).read_bytes())
