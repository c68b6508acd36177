"""Absolute and musically-relative positions in a beatmap's audio track."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING

from .offset import BeatOffset
from .snapping import DEFAULT_POLICY, Snap, SnapPolicy
from .snapping import approximate as _approximate
from .snapping import snap as _snap

if TYPE_CHECKING:
    from .point import TimingPoint


@functools.total_ordering
class TimeLocation:
    """A moment in the track.

    Locations compare, order and hash by their resolved millisecond value,
    so ``Absolute(13545) == Relative(tp, 1)`` when ``tp`` starts a 1200 ms
    measure at 12345 ms.
    """

    def into_milliseconds(self) -> int:
        raise NotImplementedError

    def approximate(
        self,
        point: TimingPoint,
        policy: SnapPolicy = DEFAULT_POLICY,
    ) -> tuple[int, BeatOffset]:
        """Re-express this location as ``(measure, offset)`` against *point*."""
        return _approximate(self.into_milliseconds(), point, policy)

    def snap(self, point: TimingPoint, policy: SnapPolicy = DEFAULT_POLICY) -> Snap:
        return _snap(self.into_milliseconds(), point, policy)

    def __int__(self) -> int:
        return self.into_milliseconds()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeLocation):
            return NotImplemented
        return self.into_milliseconds() == other.into_milliseconds()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TimeLocation):
            return NotImplemented
        return self.into_milliseconds() < other.into_milliseconds()

    def __hash__(self) -> int:
        return hash(self.into_milliseconds())


@dataclass(frozen=True, eq=False)
class Absolute(TimeLocation):
    """Milliseconds since the start of the audio; negative values are pre-roll."""

    ms: int

    def into_milliseconds(self) -> int:
        return self.ms


@dataclass(frozen=True, eq=False, repr=False)
class Relative(TimeLocation):
    """``measure`` whole measures plus ``offset`` of a measure after ``point``.

    Tempo and meter come from ``point``'s uninherited ancestor. ``measure``
    may be negative for positions before the point.
    """

    point: TimingPoint
    measure: int = 0
    offset: BeatOffset = BeatOffset(0, 1)

    def __post_init__(self) -> None:
        if isinstance(self.offset, Fraction):
            object.__setattr__(self, "offset", BeatOffset.from_fraction(self.offset))

    def into_milliseconds(self) -> int:
        base = self.point.time.into_milliseconds()

        ms_per_measure = self.point.ms_per_beat * self.point.meter

        measure_offset = ms_per_measure * self.measure
        # multiply before dividing to keep precision until the final truncation
        fractional_offset = self.offset.numerator * ms_per_measure / self.offset.denominator

        return base + int(measure_offset + fractional_offset)

    def __repr__(self) -> str:
        return f"Relative(point@{self.point.time!r}, measure={self.measure}, offset={self.offset})"
