#!/usr/bin/env python3
"""Human-readable dump of a floww packet stream.

The file may hold several batches back to back; they are fed through a
``StreamDecoder`` in order, exactly as a receiver would see them.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Dict, List

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from floww.decoder import StreamDecoder  # noqa: E402
from floww.errors import PacketDecodeError  # noqa: E402
from floww.packets import Track, batch_size, decode  # noqa: E402
from floww.timeline import Timeline  # noqa: E402

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def collect_track_names(data: bytes) -> List[str]:
    """Return track names in first-seen order across all batches."""
    names: List[str] = []
    pos = 0
    while pos < len(data):
        size = batch_size(data[pos:])
        if size is None or pos + size > len(data):
            raise PacketDecodeError(f"truncated batch at offset 0x{pos:X}")
        for packet in decode(data[pos : pos + size]):
            if isinstance(packet, Track) and packet.name not in names:
                names.append(packet.name)
        pos += size
    return names


def format_report(messages: List[str], names: List[str], timelines: List[Timeline], limit: int) -> List[str]:
    lines = [f"messages: {len(messages)}"]
    for text in messages:
        lines.append(f"  {text!r}")
    lines.append(f"tracks: {len(names)}")
    for name, timeline in zip(names, timelines):
        if timeline:
            span = f"{timeline[0].time:.3f}s..{timeline[-1].end:.3f}s"
        else:
            span = "-"
        lines.append(f"  [{name}] points={len(timeline)} span={span}")
        for point in timeline[:limit]:
            lines.append(
                f"    id={point.id:<4d} t={point.time:9.4f} note={point.note:6.2f} vel={point.velocity:.3f}"
            )
        if len(timeline) > limit:
            lines.append(f"    ... {len(timeline) - limit} more")
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a floww packet stream.")
    parser.add_argument("path", type=Path, help="Packet stream file")
    parser.add_argument("--points", type=int, default=8, help="Points to list per track")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    data = args.path.read_bytes()
    try:
        names = collect_track_names(data)
    except PacketDecodeError as exc:
        print(f"error: {args.path}: {exc}", file=sys.stderr)
        return 1

    index: Dict[str, int] = {name: idx for idx, name in enumerate(names)}
    timelines = [Timeline() for _ in names]
    decoder = StreamDecoder()
    messages = decoder.feed(data, index, timelines)

    for line in format_report(messages, names, timelines, max(0, args.points)):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
