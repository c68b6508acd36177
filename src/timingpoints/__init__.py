"""Beatmap timing points and musical time conversion."""

from .errors import (
    InconsistentTimingError,
    InvalidSampleSetError,
    TimingError,
    TimingParseError,
    UnresolvedAncestorError,
)
from .hitsounds import SampleSet
from .location import Absolute, Relative, TimeLocation
from .offset import BeatOffset
from .osufile import dump_timing_points, format_timing_point, parse_timing_point, parse_timing_points
from .point import Inherited, TimingPoint, Uninherited
from .serde import deserialize_timing_map, serialize_timing_map
from .snapping import DEFAULT_POLICY, Snap, SnapPolicy, approximate, snap
from .timing_map import TimingMap, TimingMapBuilder

__all__ = [
    "Absolute",
    "approximate",
    "BeatOffset",
    "DEFAULT_POLICY",
    "deserialize_timing_map",
    "dump_timing_points",
    "format_timing_point",
    "InconsistentTimingError",
    "Inherited",
    "InvalidSampleSetError",
    "parse_timing_point",
    "parse_timing_points",
    "Relative",
    "SampleSet",
    "serialize_timing_map",
    "snap",
    "Snap",
    "SnapPolicy",
    "TimeLocation",
    "TimingError",
    "TimingMap",
    "TimingMapBuilder",
    "TimingParseError",
    "TimingPoint",
    "Uninherited",
    "UnresolvedAncestorError",
]

__version__ = "0.1.0"
