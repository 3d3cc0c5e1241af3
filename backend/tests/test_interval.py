"""
Tests for services/analyzers/interval.py: interval problems and scoring.
"""

import random

import pytest

from pitchwiz.core.errors import MalformedNoteIdentifier
from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.analyzers.interval import INTERVAL_LEVELS, generate_interval, score_interval
from pitchwiz.services.analyzers.note_mapper import note_sort_key

from conftest import frames_from_runs


class TestIntervalLevels:
    def test_levels_build_on_each_other(self):
        order = ["beginner", "intermediate", "advanced", "expert"]
        for easier, harder in zip(order, order[1:]):
            assert set(INTERVAL_LEVELS[easier]) < set(INTERVAL_LEVELS[harder])

    def test_pool_sizes(self):
        assert [len(INTERVAL_LEVELS[level]) for level in ("beginner", "intermediate", "advanced", "expert")] == [
            4,
            8,
            12,
            17,
        ]


class TestGenerateInterval:
    @pytest.mark.parametrize("seed", range(20))
    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_notes_inside_range_and_interval_apart(self, seed, direction):
        problem = generate_interval("expert", direction, "E2", "G4", rng=random.Random(seed))
        reference = note_sort_key(problem.reference_note)
        target = note_sort_key(problem.target_note)

        assert note_sort_key("E2") <= min(reference, target)
        assert max(reference, target) <= note_sort_key("G4")
        step = problem.semitones if direction == "asc" else -problem.semitones
        assert target - reference == step
        assert problem.direction == direction

    def test_random_direction_is_resolved(self):
        directions = {generate_interval(direction="random", rng=random.Random(seed)).direction for seed in range(30)}
        assert directions == {"asc", "desc"}

    def test_wide_intervals_left_out_of_narrow_range(self):
        problem = generate_interval("beginner", "asc", "C4", "D4", rng=random.Random(1))
        assert problem.interval_name == "Major 2nd"
        assert (problem.reference_note, problem.target_note) == ("C4", "D4")

    def test_descending_starts_on_upper_note(self):
        problem = generate_interval("beginner", "desc", "C4", "D4", rng=random.Random(1))
        assert (problem.reference_note, problem.target_note) == ("D4", "C4")

    def test_range_too_narrow(self):
        with pytest.raises(ValueError):
            generate_interval("beginner", "asc", "C4", "C4")

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            generate_interval("virtuoso")

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            generate_interval(direction="sideways")

    def test_malformed_range(self):
        with pytest.raises(MalformedNoteIdentifier):
            generate_interval(lowest="C", highest="C5")


class TestScoreInterval:
    def test_clean_hit(self):
        frames = frames_from_runs([("C4", 500), ("C#4", 100), ("E4", 400)])
        result = score_interval(frames, "C4", "E4")
        assert result.hit is True
        assert result.score == 100.0
        assert result.average_cents == 0
        assert result.glide_percent == 10
        assert result.feedback == "Excellent! Target hit."

    def test_tuning_error_costs_a_point_per_cent(self):
        frames = frames_from_runs([("C4", 500), ("E4", 500)], cents=12.0)
        result = score_interval(frames, "C4", "E4")
        assert result.average_cents == 12
        assert result.score == 88.0

    def test_miss_reports_what_was_sung(self):
        frames = frames_from_runs([("C4", 500), ("D#4", 500)])
        result = score_interval(frames, "C4", "E4")
        assert result.hit is False
        assert result.score == 0.0
        assert result.notes_sung == ["C4", "D#4"]
        assert result.feedback == "You sang: C4, D#4. Target: E4"

    def test_touching_the_target_is_not_a_hit(self):
        frames = frames_from_runs([("C4", 500), ("E4", 50)])
        result = score_interval(frames, "C4", "E4")
        assert result.hit is False
        assert result.average_cents == 0

    def test_silence_between_notes_is_not_glide(self):
        frames = frames_from_runs([("C4", 500), (None, 500), ("E4", 500)])
        assert score_interval(frames, "C4", "E4").glide_percent == 0

    def test_nothing_sung(self):
        result = score_interval([PitchFrame.silent(0), PitchFrame.silent(50)], "C4", "E4")
        assert result.hit is False
        assert result.glide_percent == 0
        assert result.feedback == "No pitch detected"

    def test_uses_given_notes_practiced(self):
        frames = frames_from_runs([("C4", 500), ("E4", 500)])
        assert score_interval(frames, "C4", "E4", practiced=["C4"]).hit is False

    def test_malformed_notes(self):
        with pytest.raises(MalformedNoteIdentifier):
            score_interval([], "C4", "E")
