#!/usr/bin/env python3
"""Convert a MIDI file into a floww packet stream.

Examples
--------
One named timeline per MIDI track (default):
    python tools/midi_to_floww.py input.mid
    python tools/midi_to_floww.py input.mid -o out/song.floww --sort --zero

All tracks flattened into a single timeline named after the file:
    python tools/midi_to_floww.py input.mid --merge --message "take 3"
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from floww.errors import SourceParseError  # noqa: E402
from floww.midi import read_sheet_from_midi, read_timeline_from_midi  # noqa: E402
from floww.packets import Msg, Packet, encode  # noqa: E402
from floww.sheet import Sheet  # noqa: E402

logger = logging.getLogger("midi_to_floww")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_sheet(path: Path, *, merge: bool) -> Sheet:
    if merge:
        sheet = Sheet()
        sheet.add(read_timeline_from_midi(path), path.stem)
        return sheet
    return read_sheet_from_midi(path)


def normalize(sheet: Sheet, *, sort: bool, scale: Optional[float], zero: bool) -> None:
    for name, timeline in sheet:
        if sort:
            timeline.sort_by_time()
        if zero:
            timeline.start_from_zero()
        if scale is not None:
            timeline.scale(scale)
        logger.debug("%s: %d points, %.3fs", name, len(timeline), timeline.duration)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Convert MIDI into a floww packet stream.")
    parser.add_argument("input", type=Path, help="Source .mid file")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output path (default: input with .floww suffix)",
    )
    parser.add_argument(
        "--merge",
        action="store_true",
        help="Flatten every MIDI track into one timeline named after the file",
    )
    parser.add_argument("--sort", action="store_true", help="Sort each timeline by time")
    parser.add_argument("--zero", action="store_true", help="Rebase each timeline to start at 0")
    parser.add_argument("--scale", type=float, default=None, help="Multiply all times by this factor")
    parser.add_argument(
        "--message",
        action="append",
        default=[],
        help="Message packet to emit ahead of the tracks (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    try:
        sheet = build_sheet(args.input, merge=args.merge)
    except SourceParseError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    normalize(sheet, sort=args.sort, scale=args.scale, zero=args.zero)
    names = sheet.get_names()

    packets: List[Packet] = [Msg(text) for text in args.message]
    packets.extend(sheet.to_packets())
    data = encode(packets)

    output = args.output or args.input.with_suffix(".floww")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    print(f"wrote {output} ({len(data)} bytes, {len(names)} tracks: {', '.join(names)})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
