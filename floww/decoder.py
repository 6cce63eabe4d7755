"""Stateful packet decoder.

The decoder remembers one thing between calls: the index of the current
destination timeline, or ``None`` when no track is selected.

  Msg(text)     text is collected and returned; state unchanged
  Track(name)   destination = index[name], or None when the name is unknown
  Point(p)      appended to destinations[destination]; dropped when there
                is no destination or the index is out of range

The state is never cleared implicitly, so a stream split over several calls
keeps routing points to the last selected track.  The decoder stores an
index, not a name: callers must keep the same index assignment for the
destinations they pass across calls.

Corrupt input is not an error here.  A batch that fails to parse yields no
messages and leaves both the destinations and the decoder state untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Mapping, MutableSequence, Optional, Sequence

from .errors import PacketDecodeError
from .packets import Msg, Packet, PointPacket, Track, batch_size, decode
from .point import Point

if TYPE_CHECKING:
    from .sheet import Sheet

logger = logging.getLogger(__name__)

Destinations = Sequence[MutableSequence[Point]]


class StreamDecoder:
    def __init__(self) -> None:
        self.destination: Optional[int] = None
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes waiting for the rest of a batch."""
        return len(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()
        self.destination = None

    def apply(
        self,
        packets: Iterable[Packet],
        index: Mapping[str, int],
        destinations: Destinations,
    ) -> List[str]:
        messages: List[str] = []
        dropped = 0
        for packet in packets:
            if isinstance(packet, Msg):
                messages.append(packet.text)
            elif isinstance(packet, Track):
                self.destination = index.get(packet.name)
                if self.destination is None:
                    logger.debug("unresolved track %r; dropping points", packet.name)
            elif isinstance(packet, PointPacket):
                slot = self.destination
                if slot is not None and 0 <= slot < len(destinations):
                    destinations[slot].append(packet.point)
                else:
                    dropped += 1
        if dropped:
            logger.debug("dropped %d point(s) without a destination", dropped)
        return messages

    def decode(
        self,
        data: bytes,
        index: Mapping[str, int],
        destinations: Destinations,
    ) -> List[str]:
        """Decode one batch into ``destinations`` and return its messages."""
        try:
            packets = decode(data)
        except PacketDecodeError as exc:
            logger.debug("ignoring corrupt batch (%d bytes): %s", len(data), exc)
            return []
        return self.apply(packets, index, destinations)

    def decode_into(self, data: bytes, sheet: "Sheet") -> List[str]:
        return self.decode(data, sheet.index, sheet.timelines)

    def feed(
        self,
        chunk: bytes,
        index: Mapping[str, int],
        destinations: Destinations,
    ) -> List[str]:
        """Buffer ``chunk`` and apply every batch that is now complete.

        Batches may be split across chunks at any byte.  An incomplete tail
        stays buffered for the next call.  When the buffered data cannot be
        a batch at all (bad header or body) the buffer is discarded.
        """
        self._buffer.extend(chunk)
        messages: List[str] = []
        while True:
            try:
                size = batch_size(self._buffer)
            except PacketDecodeError as exc:
                logger.warning("discarding %d buffered bytes: %s", len(self._buffer), exc)
                self._buffer.clear()
                break
            if size is None or len(self._buffer) < size:
                break
            batch = bytes(self._buffer[:size])
            del self._buffer[:size]
            try:
                packets = decode(batch)
            except PacketDecodeError as exc:
                logger.warning("discarding corrupt batch (%d bytes): %s", size, exc)
                continue
            messages.extend(self.apply(packets, index, destinations))
        return messages
