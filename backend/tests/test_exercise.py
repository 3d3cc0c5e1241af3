"""
Tests for services/analyzers/exercise.py: attempt scoring and calibration.
"""

import pytest

from pitchwiz.core.errors import MalformedNoteIdentifier
from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.analyzers.exercise import attempt_deviations, calibrate_note, frame_durations, score_attempt

from conftest import frames_from_runs


class TestAttemptDeviations:
    def test_only_frames_near_target_count(self):
        frames = frames_from_runs([("A4", 50), ("E5", 50), (None, 50)])
        deviations = attempt_deviations(frames, 440.0)
        assert len(deviations) == 5
        assert all(d == pytest.approx(0.0, abs=1e-6) for d in deviations)


class TestScoreAttempt:
    def test_in_tune_attempt_is_perfect(self):
        frames = frames_from_runs([("A4", 1000)])
        result = score_attempt(frames, "A4")
        assert result.score == 100.0
        assert result.feedback == "Perfect!"
        assert result.note_id == "A4"
        assert result.held_ms == 990

    def test_small_errors_are_free(self):
        frames = frames_from_runs([("A4", 1000)], cents=4.0)
        assert score_attempt(frames, "A4").score == 100.0

    def test_penalty_per_cent(self):
        """20 cents sharp throughout: 100 - (20 - 5) * 2 = 70."""
        frames = frames_from_runs([("A4", 1000)], cents=20.0)
        result = score_attempt(frames, "A4")
        assert result.score == 70.0
        assert result.feedback == "Good!"

    def test_poor_attempt(self):
        frames = frames_from_runs([("A4", 1000)], cents=40.0)
        result = score_attempt(frames, "A4")
        assert result.score == 30.0
        assert result.feedback == "Try Again"

    def test_opening_scoop_is_ignored(self):
        """The first 30% of samples may be far off without hurting the score."""
        scoop = frames_from_runs([("G#4", 200)])
        settled = [
            f.model_copy(update={"timestamp_ms": f.timestamp_ms + 200})
            for f in frames_from_runs([("A4", 800)])
        ]
        assert score_attempt(scoop + settled, "A4").score == 100.0

    def test_too_few_samples(self):
        frames = frames_from_runs([("A4", 100)])
        result = score_attempt(frames, "A4")
        assert result.score == 0.0
        assert result.feedback == "No pitch detected"

    def test_scored_at_session_frame_rate(self):
        """Five frames 93 ms apart are nearly half a second of singing."""
        frames = frames_from_runs([("A4", 465)], step_ms=93)
        result = score_attempt(frames, "A4")
        assert result.score == 100.0
        assert result.feedback == "Perfect!"

    def test_minimum_is_time_not_frame_count(self):
        """Many closely spaced frames still need enough singing time."""
        frames = frames_from_runs([("A4", 150)], step_ms=5)
        assert score_attempt(frames, "A4").feedback == "No pitch detected"

    def test_scoop_trim_is_capped(self):
        """At most one second is dropped from the start of a long attempt."""
        runs = [(1000, 0.0), (500, 50.0), (3500, 0.0)]
        frames, start = [], 0
        for duration_ms, cents in runs:
            frames += [
                f.model_copy(update={"timestamp_ms": f.timestamp_ms + start})
                for f in frames_from_runs([("A4", duration_ms)], cents=cents)
            ]
            start += duration_ms
        # 30% of 5 s would also drop the wobble; the 1 s cap keeps it in the score
        assert 90 <= score_attempt(frames, "A4").score < 100

    def test_wrong_note_entirely(self):
        frames = frames_from_runs([("D5", 1000)])
        result = score_attempt(frames, "A4")
        assert result.score == 0.0
        assert result.held_ms == 0

    def test_malformed_target_fails_fast(self):
        with pytest.raises(MalformedNoteIdentifier):
            score_attempt([], "A?4")


class TestCalibrateNote:
    def test_most_common_note(self):
        frames = frames_from_runs([("E2", 100), ("F2", 300), (None, 100), ("E2", 50)])
        assert calibrate_note(frames) == "F2"

    def test_silent_capture(self):
        assert calibrate_note([PitchFrame.silent(0), PitchFrame.silent(10)]) is None

    def test_empty_capture(self):
        assert calibrate_note([]) is None


class TestFrameDurations:
    def test_gap_to_next_frame(self):
        frames = [PitchFrame.silent(t) for t in (0, 50, 150)]
        assert frame_durations(frames) == [50, 100, 100]

    def test_single_and_empty(self):
        assert frame_durations([PitchFrame.silent(0)]) == [0]
        assert frame_durations([]) == []
