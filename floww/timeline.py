"""Timelines and the timeline algebra.

A timeline is an ordered list of timed records.  Order is append order;
it only becomes chronological after ``sort_by_time`` or ``merge``.

The algebra is written against the ``Timed`` protocol and works on any
mutable sequence.  "First" and "last" always mean position in the sequence,
not minimum or maximum time, so callers that need chronological semantics
must sort first.

Time shifts are clamped: the applied shift is ``max(t, -first.time)``, which
keeps the first record from ever moving below zero.

Sort ties keep their original relative order (stable sort).
"""

from __future__ import annotations

import math
from typing import Iterable, List, MutableSequence, Sequence, TypeVar

from .point import Point, Timed

T = TypeVar("T", bound=Timed)


def _clamped_shift(points: Sequence[Timed], t: float) -> float:
    return max(t, -points[0].time)


def _checked_sort(points: Sequence[T]) -> List[T]:
    for idx, point in enumerate(points):
        if math.isnan(point.time):
            raise ValueError(f"cannot sort timeline: NaN time at index {idx}")
    return sorted(points, key=lambda p: p.time)


def sort_by_time(points: MutableSequence[T]) -> None:
    """Stable in-place sort by ``time``.  NaN times raise ``ValueError``."""
    points[:] = _checked_sort(points)


def shift_time(points: MutableSequence[T], t: float) -> None:
    if not points:
        return
    shift = _clamped_shift(points, t)
    points[:] = [p.with_time(p.time + shift) for p in points]


def start_from_zero(points: MutableSequence[T]) -> None:
    if not points:
        return
    shift_time(points, -points[0].time)


def scale(points: MutableSequence[T], factor: float) -> None:
    points[:] = [p.scaled(factor) for p in points]


def merge(points: MutableSequence[T], other: Iterable[T]) -> None:
    """Append ``other`` and re-sort the combined sequence.

    ``points`` is only replaced once the combined sort succeeded.
    """
    points[:] = _checked_sort([*points, *other])


def fuse(points: MutableSequence[T], other: Sequence[T]) -> None:
    """Append ``other`` so that it starts where ``points`` ends.

    With an empty ``points`` the result is exactly ``other``, unshifted.
    Otherwise ``other`` is shifted by the end time of the last record of
    ``points`` (clamped like ``shift_time``).  ``other`` itself is left
    untouched.
    """
    if not other:
        return
    if not points:
        points[:] = list(other)
        return
    shift = _clamped_shift(other, points[-1].end)
    points.extend(p.with_time(p.time + shift) for p in other)


def duration(points: Sequence[Timed]) -> float:
    if not points:
        return 0.0
    return points[-1].end - points[0].time


class Timeline(list):
    """A list of points with the timeline algebra attached.

    Every operation has a mutating form returning ``None`` and a value form
    that applies the same change to ``self`` and returns it, so calls can be
    chained.  The value forms never copy.
    """

    def sort_by_time(self) -> None:
        sort_by_time(self)

    def sorted_by_time(self) -> "Timeline":
        sort_by_time(self)
        return self

    def shift_time(self, t: float) -> None:
        shift_time(self, t)

    def shifted(self, t: float) -> "Timeline":
        shift_time(self, t)
        return self

    def start_from_zero(self) -> None:
        start_from_zero(self)

    def started_from_zero(self) -> "Timeline":
        start_from_zero(self)
        return self

    def scale(self, factor: float) -> None:
        scale(self, factor)

    def scaled(self, factor: float) -> "Timeline":
        scale(self, factor)
        return self

    def merge(self, other: Iterable[Point]) -> None:
        merge(self, other)

    def merged(self, other: Iterable[Point]) -> "Timeline":
        merge(self, other)
        return self

    def fuse(self, other: Sequence[Point]) -> None:
        fuse(self, other)

    def fused(self, other: Sequence[Point]) -> "Timeline":
        fuse(self, other)
        return self

    @property
    def duration(self) -> float:
        return duration(self)
