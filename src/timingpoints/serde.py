"""JSON serialization and deserialization for timing maps."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .errors import InconsistentTimingError, TimingError, TimingParseError
from .hitsounds import SampleSet
from .location import Absolute, Relative, TimeLocation
from .offset import BeatOffset
from .point import Inherited, TimingPoint, Uninherited
from .timing_map import TimingMap, TimingMapBuilder

log = logging.getLogger(__name__)

SCHEMA = "timingpoints-map-v1"


def _index(timing_map: TimingMap, point: TimingPoint, what: str) -> int:
    try:
        return timing_map.index_of(point)
    except KeyError:
        raise InconsistentTimingError(
            f"{what} at {point.time!r} is not part of the timing map being serialized"
        ) from None


def _serialize_time(time: TimeLocation, timing_map: TimingMap) -> dict:
    if isinstance(time, Relative):
        return {
            "point": _index(timing_map, time.point, "Anchor"),
            "measure": time.measure,
            "offset": [time.offset.numerator, time.offset.denominator],
        }
    return {"ms": time.into_milliseconds()}


def _serialize_point(point: TimingPoint, timing_map: TimingMap) -> dict:
    data: dict[str, Any] = {"time": _serialize_time(point.time, timing_map)}

    kind = point.kind
    if isinstance(kind, Uninherited):
        data["kind"] = "uninherited"
        data["beat_length"] = kind.beat_length
        data["meter"] = kind.meter
    else:
        data["kind"] = "inherited"
        data["beat_length"] = kind.beat_length
        data["parent"] = _index(timing_map, point.uninherited_ancestor(), "Parent")

    data["kiai"] = point.kiai
    data["sample_set"] = point.sample_set.name.lower()
    data["sample_index"] = point.sample_index
    data["volume"] = point.volume
    if point.omit_first_barline:
        data["omit_first_barline"] = True
    return data


def serialize_timing_map(timing_map: TimingMap) -> dict:
    """Convert a TimingMap to a JSON-compatible dict.

    Relative anchors and inherited parents are written as indices into the
    ``points`` list. Tempo is written as ``beat_length`` so file values
    survive unchanged.
    """
    return {
        "$schema": SCHEMA,
        "points": [_serialize_point(point, timing_map) for point in timing_map],
    }


def _deserialize_time(data: dict, load: Callable[[Any, str], TimingPoint]) -> TimeLocation:
    if "ms" in data:
        return Absolute(int(data["ms"]))
    anchor = load(data["point"], "time")
    numerator, denominator = data.get("offset", [0, 1])
    return Relative(anchor, int(data.get("measure", 0)), BeatOffset(numerator, denominator))


def _deserialize_kind(data: dict, load: Callable[[Any, str], TimingPoint], position: int):
    kind_name = data.get("kind", "uninherited")
    if kind_name == "uninherited":
        meter = int(data.get("meter", 4))
        if "bpm" in data:
            return Uninherited.from_bpm(float(data["bpm"]), meter)
        return Uninherited(float(data["beat_length"]), meter)
    if kind_name == "inherited":
        parent = None
        if data.get("parent") is not None:
            parent = load(data["parent"], "parent")
        if "slider_velocity" in data:
            return Inherited.from_slider_velocity(float(data["slider_velocity"]), parent)
        return Inherited(float(data.get("beat_length", -100.0)), parent)
    raise TimingParseError(f"unknown timing point kind {kind_name!r}", line_no=position, field="kind")


def _deserialize_point(data: dict, load: Callable[[Any, str], TimingPoint], position: int) -> TimingPoint:
    return TimingPoint(
        time=_deserialize_time(data["time"], load),
        kind=_deserialize_kind(data, load, position),
        kiai=bool(data.get("kiai", False)),
        sample_set=SampleSet.from_name(data.get("sample_set", "none")),
        sample_index=int(data.get("sample_index", 0)),
        volume=int(data.get("volume", 100)),
        omit_first_barline=bool(data.get("omit_first_barline", False)),
    )


def deserialize_timing_map(data: dict) -> TimingMap:
    """Reconstruct a TimingMap from a dict produced by :func:`serialize_timing_map`.

    Entries may refer to any other entry, earlier or later; referenced
    entries are decoded first. ``bpm`` and ``slider_velocity`` are accepted
    in place of ``beat_length``. ``line_no`` on raised
    :class:`TimingParseError` is the index of the offending entry in
    ``points``.
    """
    schema = data.get("$schema")
    if schema is not None and schema != SCHEMA:
        log.warning("Unexpected schema %r, expected %r; decoding anyway", schema, SCHEMA)

    entries = data.get("points", [])
    built: dict[int, TimingPoint] = {}
    loading: set[int] = set()

    def load(position: int) -> TimingPoint:
        if position in built:
            return built[position]
        loading.add(position)

        def reference(index: Any, what: str) -> TimingPoint:
            if not isinstance(index, int) or not 0 <= index < len(entries):
                raise TimingParseError(f"{what} refers to unknown point {index!r}", line_no=position)
            if index in loading:
                raise TimingParseError(f"{what} refers to point {index}, which depends on it", line_no=position)
            return load(index)

        try:
            point = _deserialize_point(entries[position], reference, position)
        except TimingError:
            raise
        except KeyError as e:
            raise TimingParseError("missing required key", line_no=position, field=e.args[0]) from None
        except (TypeError, ValueError) as e:
            raise TimingParseError(str(e), line_no=position) from e
        loading.discard(position)
        built[position] = point
        return point

    points = [load(position) for position in range(len(entries))]
    return TimingMapBuilder(points).build()
