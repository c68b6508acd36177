"""Snap absolute timestamps onto a timing section's beat grid."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .offset import BeatOffset

if TYPE_CHECKING:
    from .location import Relative
    from .point import TimingPoint

log = logging.getLogger(__name__)

DEFAULT_DIVISORS = (1, 2, 3, 4, 6, 8, 12, 16)
DEFAULT_TOLERANCE_MS = 3

FALLBACK = (0, BeatOffset(0, 1))


@dataclass(frozen=True)
class SnapPolicy:
    """Which beat subdivisions count as the grid, and how close is close enough.

    Divisors are tried in the given order; on equal distance the earlier
    divisor wins, so list them from coarse to fine.
    """

    divisors: tuple[int, ...] = DEFAULT_DIVISORS
    tolerance_ms: int = DEFAULT_TOLERANCE_MS

    def __post_init__(self) -> None:
        if not self.divisors:
            raise ValueError("SnapPolicy needs at least one divisor")
        for d in self.divisors:
            if not isinstance(d, int) or d <= 0:
                raise ValueError(f"Invalid divisor {d!r}")
        if self.tolerance_ms <= 0:
            raise ValueError(f"tolerance_ms must be > 0, got {self.tolerance_ms}")

    def candidates(self, ms_per_measure: float) -> list[tuple[int, int, int]]:
        """Return ``(i, d, snap_ms)`` for every grid line in one measure.

        The last entry is the next measure's downbeat, written ``(1, 1, ...)``.
        """
        seen: set[tuple[int, int, int]] = set()
        result = []
        for d in self.divisors:
            for i in range(d):
                entry = (i, d, int(ms_per_measure * i / d))
                if entry not in seen:
                    seen.add(entry)
                    result.append(entry)
        result.append((1, 1, int(ms_per_measure)))
        return result


DEFAULT_POLICY = SnapPolicy()


@dataclass(frozen=True)
class Snap:
    """Closest grid position found for a timestamp."""

    measure: int
    offset: BeatOffset
    error_ms: int
    tolerance_ms: int = DEFAULT_TOLERANCE_MS

    @property
    def in_grid(self) -> bool:
        return self.error_ms < self.tolerance_ms

    def location(self, point: TimingPoint) -> Relative:
        from .location import Relative

        return Relative(point, self.measure, self.offset)


def snap(ms: int, point: TimingPoint, policy: SnapPolicy = DEFAULT_POLICY) -> Snap:
    """Find the grid line of *point*'s section nearest to *ms*.

    Always returns the best candidate, even when it is outside the policy's
    tolerance; check ``Snap.in_grid``.
    """
    ms_per_measure = point.ms_per_measure
    base = point.offset

    measures = math.floor((ms - base) / ms_per_measure)
    measure_start = base + int(measures * ms_per_measure)
    offset_ms = ms - measure_start

    ranked = sorted(
        policy.candidates(ms_per_measure),
        key=lambda c: (abs(offset_ms - c[2]), c[1], c[0]),
    )
    i, d, snap_ms = ranked[0]
    error = abs(offset_ms - snap_ms)

    if i == d:
        # Rounded down into the previous measure; it is really the next downbeat.
        measures += 1
        i = 0

    log.debug(
        "snap %d against %d: measure=%d offset_ms=%d -> %d/%d (error %d ms)",
        ms, base, measures, offset_ms, i, d, error,
    )
    return Snap(measures, BeatOffset(i, d), error, policy.tolerance_ms)


def approximate(
    ms: int,
    point: TimingPoint,
    policy: SnapPolicy = DEFAULT_POLICY,
) -> tuple[int, BeatOffset]:
    """Express *ms* as ``(measure, offset)`` relative to *point*.

    Returns ``(0, BeatOffset(0, 1))`` when no grid line lies within the
    policy's tolerance. Use :func:`snap` to get the best candidate anyway.
    """
    result = snap(ms, point, policy)
    if not result.in_grid:
        log.debug(
            "No grid line within %d ms of %d (closest is %d ms away)",
            policy.tolerance_ms, ms, result.error_ms,
        )
        return FALLBACK
    return result.measure, result.offset
