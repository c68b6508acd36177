"""Exact fractional beat positions within a measure."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from fractions import Fraction


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class BeatOffset:
    """A fraction of one measure, kept as the pair it was written with.

    ``BeatOffset(2, 4)`` is not reduced, but compares and hashes equal to
    ``BeatOffset(1, 2)``.

    >>> BeatOffset(3, 4) > BeatOffset(1, 2)
    True
    >>> str(BeatOffset(6, 8).reduced())
    '3/4'
    """

    numerator: int
    denominator: int = 1

    def __post_init__(self) -> None:
        if self.numerator < 0:
            raise ValueError(f"numerator must be >= 0, got {self.numerator}")
        if self.denominator <= 0:
            raise ValueError(f"denominator must be > 0, got {self.denominator}")

    @classmethod
    def from_fraction(cls, value: Fraction) -> BeatOffset:
        return cls(value.numerator, value.denominator)

    def as_fraction(self) -> Fraction:
        return Fraction(self.numerator, self.denominator)

    def reduced(self) -> BeatOffset:
        return BeatOffset.from_fraction(self.as_fraction())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BeatOffset):
            return self.as_fraction() == other.as_fraction()
        if isinstance(other, Fraction):
            return self.as_fraction() == other
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, BeatOffset):
            return self.as_fraction() < other.as_fraction()
        if isinstance(other, Fraction):
            return self.as_fraction() < other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.as_fraction())

    def __float__(self) -> float:
        return self.numerator / self.denominator

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"
