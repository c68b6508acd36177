"""Reading and writing the ``[TimingPoints]`` section of .osu beatmaps.

Each line is::

    time,beatLength,meter,sampleSet,sampleIndex,volume,uninherited,effects

For uninherited points ``beatLength`` is milliseconds per beat. For inherited
points it encodes the slider velocity as ``-100 / beatLength``. The value is
kept as read, so rendered lines reproduce the file. Trailing fields may be
omitted.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, TypeVar

from .errors import TimingError, TimingParseError
from .hitsounds import SampleSet
from .location import Absolute
from .point import Inherited, TimingPoint, Uninherited
from .timing_map import TimingMap, TimingMapBuilder

log = logging.getLogger(__name__)

T = TypeVar("T")

SECTION = "TimingPoints"

DEFAULT_METER = 4
DEFAULT_SAMPLE_SET = 0
DEFAULT_SAMPLE_INDEX = 0
DEFAULT_VOLUME = 0

# effects bit flags
KIAI = 1 << 0
OMIT_FIRST_BARLINE = 1 << 3

FIELDS = (
    "time",
    "beat_length",
    "meter",
    "sample_set",
    "sample_index",
    "volume",
    "uninherited",
    "effects",
)

_SECTION_RGX = re.compile(r"^\[(?P<name>[A-Za-z]+)\]$")


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _field(
    parts: list[str],
    index: int,
    parse: Callable[[str], T],
    default: T | None,
    *,
    line_no: int | None,
    line: str,
) -> T:
    name = FIELDS[index]
    raw = parts[index].strip() if index < len(parts) else ""
    if not raw:
        if default is None:
            raise TimingParseError("missing required value", line_no=line_no, field=name, line=line)
        return default
    try:
        return parse(raw)
    except ValueError:
        raise TimingParseError(
            f"cannot parse {raw!r}", line_no=line_no, field=name, line=line
        ) from None


def parse_timing_point(line: str, line_no: int | None = None) -> TimingPoint:
    """Parse one timing point line into a draft :class:`TimingPoint`.

    Inherited points come back without a parent; assemble them with
    :class:`TimingMapBuilder` before asking for their tempo.

    >>> tp = parse_timing_point("12345,300,4,2,0,100,1,1")
    >>> tp.bpm, tp.meter, tp.kiai
    (200.0, 4, True)
    """
    line = line.strip()
    parts = line.split(",")

    def get(index, parse, default):
        return _field(parts, index, parse, default, line_no=line_no, line=line)

    time = _round_half_away(get(0, float, None))
    beat_length = get(1, float, None)
    meter = get(2, int, DEFAULT_METER)
    sample_set = SampleSet.from_code(get(3, int, DEFAULT_SAMPLE_SET))
    sample_index = get(4, int, DEFAULT_SAMPLE_INDEX)
    volume = get(5, int, DEFAULT_VOLUME)
    uninherited = get(6, int, 1) != 0
    effects = get(7, int, 0)

    if uninherited and meter < 1:
        raise TimingParseError(
            f"meter must be >= 1, got {meter}", line_no=line_no, field="meter", line=line
        )
    try:
        if uninherited:
            kind = Uninherited(beat_length, meter)
        else:
            kind = Inherited(beat_length)
    except ValueError as e:
        raise TimingParseError(
            f"invalid beat length {beat_length!r}", line_no=line_no, field="beat_length", line=line
        ) from e

    return TimingPoint(
        time=Absolute(time),
        kind=kind,
        kiai=bool(effects & KIAI),
        sample_set=sample_set,
        sample_index=sample_index,
        volume=volume,
        omit_first_barline=bool(effects & OMIT_FIRST_BARLINE),
    )


def format_timing_point(point: TimingPoint) -> str:
    """Render *point* as a ``[TimingPoints]`` line.

    Inherited lines carry their section's meter, or the default meter when
    the point has no ancestor yet.
    """
    kind = point.kind
    if isinstance(kind, Uninherited):
        meter = kind.meter
    else:
        meter = point.meter if point.is_resolved else DEFAULT_METER

    effects = 0
    if point.kiai:
        effects |= KIAI
    if point.omit_first_barline:
        effects |= OMIT_FIRST_BARLINE

    return ",".join([
        str(point.offset),
        _format_number(kind.beat_length),
        str(meter),
        str(int(point.sample_set)),
        str(point.sample_index),
        str(point.volume),
        "0" if point.is_inherited else "1",
        str(effects),
    ])


def _timing_lines(text: str):
    """Yield ``(line_no, line)`` for every timing point line in *text*.

    When *text* has section headers only the ``[TimingPoints]`` section is
    read; otherwise every line is.
    """
    lines = text.lstrip("\ufeff").splitlines()
    has_sections = any(_SECTION_RGX.match(line.strip()) for line in lines)
    section = None
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        match = _SECTION_RGX.match(line)
        if match:
            section = match.group("name")
            continue
        if has_sections and section != SECTION:
            continue
        yield line_no, line


def parse_timing_points(text: str, strict: bool = True) -> TimingMap:
    """Parse timing point lines and assemble them into a :class:`TimingMap`.

    With ``strict=False`` lines that fail to parse are logged and skipped.
    """
    builder = TimingMapBuilder()
    for line_no, line in _timing_lines(text):
        try:
            builder.add(parse_timing_point(line, line_no=line_no))
        except TimingError as e:
            if strict:
                raise
            log.warning("Skipping timing point on line %d: %s", line_no, e)
    return builder.build()


def dump_timing_points(timing_map: TimingMap, header: bool = True) -> str:
    lines = [f"[{SECTION}]"] if header else []
    lines.extend(format_timing_point(point) for point in timing_map)
    return "\n".join(lines)
