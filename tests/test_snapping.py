"""Tests for approximating absolute times on the beat grid."""

import logging

import pytest

from timingpoints import (
    DEFAULT_POLICY,
    Absolute,
    BeatOffset,
    Relative,
    Snap,
    SnapPolicy,
    approximate,
    snap,
)

from conftest import conversion_table, make_green_line, make_section, relative

FALLBACK = (0, BeatOffset(0, 1))


# --- Approximation of known positions ---


class TestApproximateKnownPositions:
    def test_conversion_table_roundtrip(self, section, green_line) -> None:
        for location, ms in conversion_table(section, green_line):
            result = Absolute(ms).approximate(location.point)
            assert result == (location.measure, location.offset), location

    def test_returns_lowest_terms(self, section) -> None:
        measure, offset = approximate(12945, section)
        assert measure == 0
        assert (offset.numerator, offset.denominator) == (1, 2)

    def test_sixteenth(self, section) -> None:
        # 1/16 of 1200 ms is 75 ms
        assert approximate(12345 + 75, section) == (0, BeatOffset(1, 16))

    def test_triplet(self, section) -> None:
        assert approximate(12345 + 400, section) == (0, BeatOffset(1, 3))

    def test_many_measures_later(self, section) -> None:
        assert approximate(12345 + 12 * 1200 + 900, section) == (12, BeatOffset(3, 4))

    def test_before_anchor_uses_floor(self, section) -> None:
        assert approximate(12045, section) == (-1, BeatOffset(3, 4))
        assert relative(section, -1, 3, 4).into_milliseconds() == 12045

    def test_relative_input_is_normalised_first(self, section, green_line) -> None:
        assert Relative(green_line, 0, BeatOffset(1, 2)).approximate(section) == (1, BeatOffset(1, 2))
        assert Relative(section, 0, BeatOffset(1, 2)).approximate(green_line) == (-1, BeatOffset(1, 2))


# --- Grid-aligned round trips ---


class TestGridRoundtrip:
    SECTIONS = [
        (200.0, 4),
        (180.0, 4),
        (175.0, 3),
        (128.0, 4),
        (333.0, 7),
        (60.0, 1),
        (97.5, 5),
    ]

    def test_every_canonical_position(self) -> None:
        for bpm, meter in self.SECTIONS:
            tp = make_section(1234, bpm=bpm, meter=meter)
            for measure in range(4):
                for d in DEFAULT_POLICY.divisors:
                    for i in range(d):
                        ms = relative(tp, measure, i, d).into_milliseconds()
                        assert approximate(ms, tp) == (measure, BeatOffset(i, d)), (bpm, meter, measure, i, d)

    def test_through_inherited_point(self) -> None:
        tp = make_section(-40, bpm=187.0, meter=4)
        green = make_green_line(Relative(tp, 2, BeatOffset(1, 4)), parent=tp)
        for d in DEFAULT_POLICY.divisors:
            for i in range(d):
                ms = relative(green, 1, i, d).into_milliseconds()
                assert approximate(ms, green) == (1, BeatOffset(i, d)), (i, d)

    def test_downbeat_rounded_into_previous_measure(self) -> None:
        # 180 BPM 4/4: measures are 1333.33 ms, so measure 3 starts at 3999.99
        tp = make_section(0, bpm=180.0, meter=4)
        assert approximate(3999, tp) == (3, BeatOffset(0, 1))


# --- Tolerance policy ---


class TestTolerance:
    def test_two_ms_late_still_snaps(self, section) -> None:
        assert approximate(12645 + 2, section) == (0, BeatOffset(1, 4))

    def test_two_ms_early_still_snaps(self, section) -> None:
        assert approximate(12645 - 2, section) == (0, BeatOffset(1, 4))

    def test_two_ms_before_next_measure(self, section) -> None:
        assert approximate(13545 - 2, section) == (1, BeatOffset(0, 1))

    def test_three_ms_off_falls_back(self, section) -> None:
        assert approximate(12645 + 3, section) == FALLBACK

    def test_far_off_grid_falls_back(self, section) -> None:
        # 40 ms into the measure: 35 ms from the nearest sixteenth
        assert approximate(12345 + 40, section) == FALLBACK

    def test_fallback_is_logged(self, section, caplog) -> None:
        caplog.set_level(logging.DEBUG, logger="timingpoints.snapping")
        approximate(12645 + 3, section)
        assert "No grid line within 3 ms" in caplog.text

    def test_custom_tolerance(self, section) -> None:
        policy = SnapPolicy(tolerance_ms=5)
        assert approximate(12645 + 4, section, policy) == (0, BeatOffset(1, 4))

    def test_custom_divisors(self, section) -> None:
        halves = SnapPolicy(divisors=(1, 2))
        assert approximate(12645, section, halves) == FALLBACK
        assert approximate(12945, section, halves) == (0, BeatOffset(1, 2))

    def test_location_method_accepts_policy(self, section) -> None:
        policy = SnapPolicy(tolerance_ms=10)
        assert Absolute(12650).approximate(section, policy) == (0, BeatOffset(1, 4))


# --- Snap results ---


class TestSnap:
    def test_in_grid(self, section) -> None:
        result = snap(12646, section)
        assert result == Snap(0, BeatOffset(1, 4), 1, 3)
        assert result.in_grid

    def test_out_of_grid_keeps_best_candidate(self, section) -> None:
        result = snap(12645 + 3, section)
        assert not result.in_grid
        assert result.measure == 0
        assert result.offset == BeatOffset(1, 4)
        assert result.error_ms == 3

    def test_location(self, section) -> None:
        result = Absolute(13245).snap(section)
        location = result.location(section)
        assert location.point is section
        assert location.into_milliseconds() == 13245


class TestSnapPolicy:
    def test_defaults(self) -> None:
        assert DEFAULT_POLICY.divisors == (1, 2, 3, 4, 6, 8, 12, 16)
        assert DEFAULT_POLICY.tolerance_ms == 3

    def test_candidates(self) -> None:
        candidates = DEFAULT_POLICY.candidates(1200.0)
        assert len(candidates) == sum(DEFAULT_POLICY.divisors) + 1
        assert candidates[0] == (0, 1, 0)
        assert (1, 4, 300) in candidates
        assert (2, 3, 800) in candidates
        assert candidates[-1] == (1, 1, 1200)

    def test_candidates_truncate(self) -> None:
        assert (1, 3, 333) in DEFAULT_POLICY.candidates(1000.0)

    def test_duplicate_divisors_collapse(self) -> None:
        assert len(SnapPolicy(divisors=(2, 2)).candidates(1000.0)) == 3

    def test_empty_divisors_rejected(self) -> None:
        with pytest.raises(ValueError):
            SnapPolicy(divisors=())

    def test_invalid_divisor_rejected(self) -> None:
        with pytest.raises(ValueError):
            SnapPolicy(divisors=(1, 0))

    def test_non_positive_tolerance_rejected(self) -> None:
        with pytest.raises(ValueError):
            SnapPolicy(tolerance_ms=0)
