"""Shared test fixtures."""

import pytest

from timingpoints import BeatOffset, Relative, TimingMap, TimingPoint


def make_section(offset: int, bpm: float, meter: int = 4, **fields) -> TimingPoint:
    return TimingPoint.uninherited(offset, bpm=bpm, meter=meter, **fields)


def make_green_line(offset, slider_velocity: float = 1.0, parent=None, **fields) -> TimingPoint:
    return TimingPoint.inherited(offset, slider_velocity=slider_velocity, parent=parent, **fields)


def relative(point: TimingPoint, measure: int, numerator: int, denominator: int) -> Relative:
    return Relative(point, measure, BeatOffset(numerator, denominator))


def conversion_table(section: TimingPoint, green_line: TimingPoint) -> list[tuple[Relative, int]]:
    """Relative locations against the ``section``/``green_line`` fixtures and their ms."""
    return [
        # uninherited anchor
        (relative(section, 0, 0, 1), 12345),
        (relative(section, 1, 0, 1), 13545),  # one measure is 4 beats of 300 ms
        (relative(section, 0, 1, 4), 12645),
        (relative(section, 0, 1, 2), 12945),
        (relative(section, 0, 3, 4), 13245),
        # inherited anchor, one measure later
        (relative(green_line, 0, 0, 1), 13545),
        (relative(green_line, 1, 0, 1), 14745),
        (relative(green_line, 0, 1, 4), 13845),
        (relative(green_line, 0, 1, 2), 14145),
        (relative(green_line, 0, 3, 4), 14445),
    ]


@pytest.fixture
def section() -> TimingPoint:
    """200 BPM in 4/4 at 12345 ms: one beat is 300 ms, one measure 1200 ms."""
    return make_section(12345, bpm=200.0, meter=4)


@pytest.fixture
def green_line(section: TimingPoint) -> TimingPoint:
    """Inherited point one measure into ``section`` (13545 ms)."""
    return make_green_line(Relative(section, 1), slider_velocity=0.5, parent=section, volume=80)


@pytest.fixture
def timing_map() -> TimingMap:
    """Two sections with a green line in each.

    0 ms: 120 BPM 4/4 (2000 ms measures); 1000 ms: 0.5x; 8000 ms: 150 BPM 3/4
    (1200 ms measures); 9500 ms: 2x.
    """
    return TimingMap.from_points([
        make_green_line(9500, slider_velocity=2.0),
        make_section(0, bpm=120.0),
        make_green_line(1000, slider_velocity=0.5),
        make_section(8000, bpm=150.0, meter=3),
    ])
