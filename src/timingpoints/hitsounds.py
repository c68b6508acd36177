"""Hitsound sample sets used by timing sections."""

from __future__ import annotations

from enum import IntEnum

from .errors import InvalidSampleSetError


class SampleSet(IntEnum):
    """Sample bank a timing section plays hitsounds from.

    ``NONE`` means "inherit from the beatmap default".
    """

    NONE = 0
    NORMAL = 1
    SOFT = 2
    DRUM = 3

    @classmethod
    def from_code(cls, code: int) -> SampleSet:
        """Look up a sample set by its numeric code in beatmap files."""
        try:
            return cls(code)
        except ValueError:
            raise InvalidSampleSetError(code) from None

    @classmethod
    def from_name(cls, name: str) -> SampleSet:
        try:
            return cls[name.upper()]
        except KeyError:
            raise InvalidSampleSetError(name) from None
