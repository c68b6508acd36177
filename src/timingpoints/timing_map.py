"""Ordered collections of timing points and their two-stage assembly."""

from __future__ import annotations

import bisect
import dataclasses
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Self

from .errors import InconsistentTimingError, UnresolvedAncestorError
from .location import Relative
from .point import TimingPoint
from .snapping import DEFAULT_POLICY, Snap, SnapPolicy
from .snapping import snap as _snap


def _offset(point: TimingPoint) -> int:
    return point.offset


def _dependencies(point: TimingPoint) -> list[TimingPoint]:
    deps = []
    if isinstance(point.time, Relative):
        deps.append(point.time.point)
    if point.is_inherited and point.kind.parent is not None:
        deps.append(point.kind.parent)
    return deps


def _rebase(point: TimingPoint, resolved: dict[int, TimingPoint]) -> TimingPoint:
    """Point *point*'s anchor and parent at their resolved copies."""
    time = point.time
    if isinstance(time, Relative):
        anchor = resolved.get(id(time.point), time.point)
        if anchor is not time.point:
            point = dataclasses.replace(point, time=dataclasses.replace(time, point=anchor))
    if point.is_inherited and point.kind.parent is not None:
        parent = resolved.get(id(point.kind.parent), point.kind.parent)
        if parent is not point.kind.parent:
            point = point.with_parent(parent)
    return point


@dataclass
class TimingMapBuilder:
    """Collects draft timing points and attaches inherited points to sections.

    Drafts may be added in any order. ``build()`` gives every inherited point
    without a parent the nearest uninherited point at or before it. Inherited
    points before the first uninherited point take the first one, whose tempo
    extends backwards.

    A draft may be anchored on, or parented to, another draft. Such drafts
    are placed once the point they depend on is resolved, and their
    ``Relative`` time and parent are rewritten to refer to the resolved copy.
    A section anchored on an inherited point therefore never becomes that
    point's parent.
    """

    points: list[TimingPoint] = field(default_factory=list)

    def add(self, point: TimingPoint) -> Self:
        self.points.append(point)
        return self

    def extend(self, points: Iterable[TimingPoint]) -> Self:
        self.points.extend(points)
        return self

    def build(self) -> TimingMap:
        draft_ids = {id(p) for p in self.points}
        resolved: dict[int, TimingPoint] = {}
        sections: list[TimingPoint] = []
        placed: list[TimingPoint] = []

        def is_ready(point: TimingPoint) -> bool:
            return all(
                id(dep) not in draft_ids or id(dep) in resolved
                for dep in _dependencies(point)
            )

        pending = list(self.points)
        while pending:
            ready = [p for p in pending if is_ready(p)]
            if not ready:
                raise InconsistentTimingError(
                    f"Timing point at {pending[0].time!r} depends on a point that depends on it"
                )
            pending = [p for p in pending if not is_ready(p)]

            # a section change at the same instant applies to inherited points there
            wave = sorted(
                ((draft, _rebase(draft, resolved)) for draft in ready),
                key=lambda pair: (pair[1].offset, pair[1].is_inherited),
            )
            for _, point in wave:
                if not point.is_inherited:
                    bisect.insort_right(sections, point, key=_offset)

            for draft, point in wave:
                if point.is_inherited and point.kind.parent is None:
                    if not sections:
                        raise UnresolvedAncestorError(
                            f"Inherited timing point at {point.time!r} has no uninherited "
                            "timing point to inherit from"
                        )
                    i = bisect.bisect_right(sections, point.offset, key=_offset)
                    point = point.with_parent(sections[max(i - 1, 0)])
                resolved[id(draft)] = point
                placed.append(point)

        placed.sort(key=lambda p: (p.offset, p.is_inherited))
        return TimingMap(placed)


class TimingMap:
    """An immutable, time-sorted set of resolved timing points.

    Ties keep their insertion order.
    """

    def __init__(self, points: Iterable[TimingPoint] = ()) -> None:
        self._points: list[TimingPoint] = []
        for point in points:
            point.uninherited_ancestor()
            bisect.insort_right(self._points, point, key=_offset)
        self._offsets = [p.offset for p in self._points]

    @classmethod
    def from_points(cls, points: Iterable[TimingPoint]) -> TimingMap:
        """Assemble a map from draft points, resolving inherited parents."""
        return TimingMapBuilder().extend(points).build()

    @property
    def points(self) -> tuple[TimingPoint, ...]:
        return tuple(self._points)

    @property
    def uninherited(self) -> tuple[TimingPoint, ...]:
        return tuple(p for p in self._points if not p.is_inherited)

    @property
    def inherited(self) -> tuple[TimingPoint, ...]:
        return tuple(p for p in self._points if p.is_inherited)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[TimingPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> TimingPoint:
        return self._points[index]

    def __repr__(self) -> str:
        return f"TimingMap({len(self._points)} points)"

    def index_of(self, point: TimingPoint) -> int:
        """Return the position of *point* itself (not an equal-time point)."""
        for i, candidate in enumerate(self._points):
            if candidate is point:
                return i
        raise KeyError(f"Timing point at {point.time!r} is not in this map")

    def children_of(self, point: TimingPoint) -> tuple[TimingPoint, ...]:
        """Inherited points whose ancestor is *point*."""
        return tuple(
            p for p in self._points
            if p.is_inherited and p.uninherited_ancestor() is point
        )

    def point_at(self, ms: int) -> TimingPoint | None:
        """The timing point in effect at *ms*.

        Before the first point, the first point applies.
        """
        if not self._points:
            return None
        i = bisect.bisect_right(self._offsets, ms)
        return self._points[max(i - 1, 0)]

    def section_at(self, ms: int) -> TimingPoint | None:
        """The uninherited point whose tempo is in effect at *ms*."""
        point = self.point_at(ms)
        if point is None:
            return None
        return point.uninherited_ancestor()

    def slider_velocity_at(self, ms: int) -> float:
        point = self.point_at(ms)
        if point is None:
            return 1.0
        return point.slider_velocity

    def snap(self, ms: int, policy: SnapPolicy = DEFAULT_POLICY) -> Snap:
        section = self.section_at(ms)
        if section is None:
            raise LookupError("Cannot snap against an empty timing map")
        return _snap(ms, section, policy)

    def locate(self, ms: int, policy: SnapPolicy = DEFAULT_POLICY) -> Relative | None:
        """Express *ms* on the grid of the section in effect there.

        Returns ``None`` when no grid line lies within the policy's tolerance.
        """
        section = self.section_at(ms)
        if section is None:
            return None
        result = _snap(ms, section, policy)
        if not result.in_grid:
            return None
        return result.location(section)
