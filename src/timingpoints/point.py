"""Timing points: the tempo sections and their inherited modifiers."""

from __future__ import annotations

import dataclasses
import functools
import math
from dataclasses import dataclass, field
from typing import Any

from .errors import InconsistentTimingError, UnresolvedAncestorError
from .hitsounds import SampleSet
from .location import Absolute, TimeLocation


@dataclass(frozen=True)
class Uninherited:
    """A section that defines its own tempo and meter (a "red line").

    The tempo is kept as ``beat_length``, milliseconds per beat, exactly as
    beatmap files store it. ``bpm`` is derived from it.
    """

    beat_length: float
    meter: int = 4

    def __post_init__(self) -> None:
        if not math.isfinite(self.beat_length) or self.beat_length <= 0:
            raise ValueError(f"beat_length must be a positive number, got {self.beat_length!r}")
        if self.meter < 1:
            raise ValueError(f"meter must be >= 1, got {self.meter!r}")

    @classmethod
    def from_bpm(cls, bpm: float, meter: int = 4) -> Uninherited:
        if not math.isfinite(bpm) or bpm <= 0:
            raise ValueError(f"bpm must be a positive number, got {bpm!r}")
        return cls(60_000.0 / bpm, meter)

    @property
    def bpm(self) -> float:
        return 60_000.0 / self.beat_length


@dataclass(frozen=True)
class Inherited:
    """A section that only changes playback parameters (a "green line").

    ``beat_length`` is the file value ``-100 / slider_velocity``.

    ``parent`` is a shared, read-only reference to the uninherited point this
    section takes its tempo from. It stays ``None`` until the collection is
    assembled.
    """

    beat_length: float = -100.0
    parent: TimingPoint | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not math.isfinite(self.beat_length) or self.beat_length == 0:
            raise ValueError(f"beat_length must be non-zero, got {self.beat_length!r}")

    @classmethod
    def from_slider_velocity(
        cls,
        slider_velocity: float = 1.0,
        parent: TimingPoint | None = None,
    ) -> Inherited:
        if not math.isfinite(slider_velocity) or slider_velocity == 0:
            raise ValueError(f"slider_velocity must be non-zero, got {slider_velocity!r}")
        return cls(-100.0 / slider_velocity, parent)

    @property
    def slider_velocity(self) -> float:
        return -100.0 / self.beat_length


TimingKind = Uninherited | Inherited


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class TimingPoint:
    """One timing section boundary.

    Points compare, order and hash by their resolved ``time`` only; two
    different sections at the same instant are equal.
    """

    time: TimeLocation
    kind: TimingKind
    kiai: bool = False
    sample_set: SampleSet = SampleSet.NONE
    sample_index: int = 0
    volume: int = 100
    omit_first_barline: bool = False

    @classmethod
    def uninherited(
        cls,
        time: TimeLocation | int,
        bpm: float,
        meter: int = 4,
        **fields: Any,
    ) -> TimingPoint:
        return cls(_as_location(time), Uninherited.from_bpm(bpm, meter), **fields)

    @classmethod
    def inherited(
        cls,
        time: TimeLocation | int,
        slider_velocity: float = 1.0,
        parent: TimingPoint | None = None,
        **fields: Any,
    ) -> TimingPoint:
        return cls(_as_location(time), Inherited.from_slider_velocity(slider_velocity, parent), **fields)

    @property
    def offset(self) -> int:
        """Resolved absolute time in milliseconds."""
        return self.time.into_milliseconds()

    @property
    def is_inherited(self) -> bool:
        return isinstance(self.kind, Inherited)

    @property
    def is_resolved(self) -> bool:
        try:
            self.uninherited_ancestor()
        except InconsistentTimingError:
            return False
        return True

    def uninherited_ancestor(self) -> TimingPoint:
        """Walk inherited parents up to the section that defines the tempo.

        Raises :class:`UnresolvedAncestorError` if a parent is missing and
        :class:`InconsistentTimingError` if the chain loops.
        """
        seen: set[int] = set()
        current = self
        while isinstance(current.kind, Inherited):
            if id(current) in seen:
                raise InconsistentTimingError(
                    f"Inherited timing point at {current.time!r} is its own ancestor"
                )
            seen.add(id(current))
            parent = current.kind.parent
            if parent is None:
                raise UnresolvedAncestorError(
                    f"Inherited timing point at {current.time!r} has no parent"
                )
            current = parent
        return current

    @property
    def bpm(self) -> float:
        return self.uninherited_ancestor().kind.bpm

    @property
    def meter(self) -> int:
        return self.uninherited_ancestor().kind.meter

    @property
    def ms_per_beat(self) -> float:
        return self.uninherited_ancestor().kind.beat_length

    @property
    def ms_per_measure(self) -> float:
        return self.ms_per_beat * self.meter

    @property
    def slider_velocity(self) -> float:
        if isinstance(self.kind, Inherited):
            return self.kind.slider_velocity
        return 1.0

    def with_parent(self, parent: TimingPoint) -> TimingPoint:
        """Return a copy of this inherited point attached to *parent*."""
        if not isinstance(self.kind, Inherited):
            raise TypeError("Only inherited timing points have a parent")
        return dataclasses.replace(self, kind=dataclasses.replace(self.kind, parent=parent))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimingPoint):
            return NotImplemented
        return self.time == other.time

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TimingPoint):
            return NotImplemented
        return self.time < other.time

    def __hash__(self) -> int:
        return hash(self.time)


def _as_location(time: TimeLocation | int) -> TimeLocation:
    if isinstance(time, TimeLocation):
        return time
    return Absolute(time)
