"""Convert MIDI event streams into timelines.

Conversion rules:

* Each track's clock starts at 0.0 seconds.  Every message first advances
  it by ``delta_ticks / ppqn * multiplier``.
* ``multiplier`` starts at 1.0 (one quarter note per second) and becomes
  ``tempo / 1_000_000`` on each ``set_tempo``.  It carries over from one
  track to the next.
* ``note_on``  -> Point(note, time, note, velocity / 127)
  ``note_off`` -> Point(note, time, note, 0.0)
  everything else is ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import mido

from .errors import SourceParseError
from .point import Point
from .sheet import Sheet
from .timeline import Timeline

logger = logging.getLogger(__name__)

DEFAULT_TEMPO_MULTIPLIER = 1.0
MAX_VELOCITY = 127.0
MICROSECONDS_PER_SECOND = 1_000_000.0


def _convert_track(
    ppqn: float, track: Iterable[mido.Message], multiplier: float
) -> Tuple[List[Point], float]:
    points: List[Point] = []
    time = 0.0
    for msg in track:
        time += msg.time / ppqn * multiplier
        if msg.type == "note_on":
            points.append(Point(msg.note, time, float(msg.note), msg.velocity / MAX_VELOCITY))
        elif msg.type == "note_off":
            points.append(Point(msg.note, time, float(msg.note), 0.0))
        elif msg.type == "set_tempo":
            multiplier = msg.tempo / MICROSECONDS_PER_SECOND
    return points, multiplier


def _check_ppqn(ppqn: int) -> float:
    if ppqn <= 0:
        raise SourceParseError(f"ticks per beat must be positive, got {ppqn}")
    return float(ppqn)


def events_to_timeline(ppqn: int, tracks: Iterable[Iterable[mido.Message]]) -> Timeline:
    """Flatten all tracks into one timeline, track after track."""
    ticks = _check_ppqn(ppqn)
    timeline = Timeline()
    multiplier = DEFAULT_TEMPO_MULTIPLIER
    for track in tracks:
        points, multiplier = _convert_track(ticks, track, multiplier)
        timeline.extend(points)
    return timeline


def midi_to_timeline(midi: mido.MidiFile) -> Timeline:
    return events_to_timeline(midi.ticks_per_beat, midi.tracks)


def midi_to_sheet(midi: mido.MidiFile) -> Sheet:
    """Build one named timeline per MIDI track.

    Tracks that yield no points (tempo maps, empty tracks) are skipped.
    Tracks are named after their ``track_name`` meta message; unnamed or
    repeated names fall back to ``track-<n>`` with ``n`` the 1-based track
    number.
    """
    ticks = _check_ppqn(midi.ticks_per_beat)
    sheet = Sheet()
    multiplier = DEFAULT_TEMPO_MULTIPLIER
    for number, track in enumerate(midi.tracks, start=1):
        points, multiplier = _convert_track(ticks, track, multiplier)
        if not points:
            continue
        name = track.name.strip()
        if not name or name in sheet:
            name = f"track-{number}"
            suffix = 2
            while name in sheet:
                name = f"track-{number}-{suffix}"
                suffix += 1
        sheet.add(Timeline(points), name)
    return sheet


def _open_midi(path: Union[str, Path]) -> mido.MidiFile:
    try:
        return mido.MidiFile(str(path))
    except (OSError, EOFError, ValueError, KeyError, IndexError) as exc:
        raise SourceParseError(f"cannot read MIDI file {path}: {exc}") from exc


def read_timeline_from_midi(path: Union[str, Path]) -> Timeline:
    midi = _open_midi(path)
    timeline = midi_to_timeline(midi)
    logger.debug("read %d points from %s", len(timeline), path)
    return timeline


def read_sheet_from_midi(path: Union[str, Path]) -> Sheet:
    midi = _open_midi(path)
    sheet = midi_to_sheet(midi)
    logger.debug("read %d tracks from %s", len(sheet), path)
    return sheet
