"""Timestamped point records.

A point is ``(id, time, note, velocity)``:

  id:       opaque correlation tag (the MIDI note number for converted
            sources); not required to be unique
  time:     seconds from the start of the timeline; a point has zero
            duration, so ``time`` is also its end time
  note:     pitch as a float
  velocity: 0.0 (release) to 1.0

The timeline algebra never touches the fields directly.  It goes through the
``Timed`` protocol so richer record types can reuse it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol, Tuple, TypeVar


T = TypeVar("T", bound="Timed")


class Timed(Protocol):
    """Anything the timeline algebra can order and move in time."""

    @property
    def time(self) -> float: ...

    @property
    def end(self) -> float: ...

    def with_time(self: T, time: float) -> T: ...

    def scaled(self: T, factor: float) -> T: ...


@dataclass(frozen=True)
class Point:
    id: int
    time: float
    note: float
    velocity: float

    @property
    def end(self) -> float:
        return self.time

    def with_time(self, time: float) -> "Point":
        return replace(self, time=time)

    def scaled(self, factor: float) -> "Point":
        return replace(self, time=self.time * factor)

    def as_tuple(self) -> Tuple[int, float, float, float]:
        return (self.id, self.time, self.note, self.velocity)

