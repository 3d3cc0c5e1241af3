"""
Tests for services/analyzers/summarizer.py: session metrics and reports.
"""

import pytest

from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.analyzers.summarizer import MetricsAggregator, SessionAnalyzer

from conftest import frames_from_runs


def _voiced(cents: float, timestamp_ms: int) -> PitchFrame:
    return PitchFrame(frequency_hz=440.0, note="A", octave=4, cents_deviation=cents, timestamp_ms=timestamp_ms)


class TestMetricsAggregator:
    def test_empty_buffer_is_all_zero(self):
        metrics = MetricsAggregator().aggregate([])
        assert metrics.time_in_tune_percent == 0.0
        assert metrics.average_cents_deviation == 0.0
        assert metrics.notes_practiced == []
        assert metrics.duration_ms == 0

    def test_all_in_tune(self):
        metrics = MetricsAggregator().aggregate(frames_from_runs([("A4", 500)]))
        assert metrics.time_in_tune_percent == 100.0
        assert metrics.average_cents_deviation == 0.0

    def test_silence_excluded_from_denominators(self):
        frames = [_voiced(0, 0), PitchFrame.silent(10), PitchFrame.silent(20), _voiced(10, 30)]
        metrics = MetricsAggregator().aggregate(frames)
        assert metrics.voiced_frames == 2
        assert metrics.time_in_tune_percent == 50.0
        assert metrics.average_cents_deviation == 5.0
        assert metrics.duration_ms == 30

    def test_all_silent(self):
        metrics = MetricsAggregator().aggregate([PitchFrame.silent(0), PitchFrame.silent(50)])
        assert metrics.voiced_frames == 0
        assert metrics.time_in_tune_percent == 0.0
        assert metrics.average_cents_deviation == 0.0
        assert metrics.duration_ms == 50

    def test_threshold_is_strict(self):
        frames = [_voiced(5, 0), _voiced(-4, 10), _voiced(-5, 20), _voiced(4.9, 30)]
        metrics = MetricsAggregator(in_tune_threshold_cents=5).aggregate(frames)
        assert metrics.in_tune_frames == 2
        assert metrics.time_in_tune_percent == 50.0

    def test_average_uses_absolute_deviation(self):
        frames = [_voiced(-20, 0), _voiced(20, 10), _voiced(-11, 20)]
        metrics = MetricsAggregator().aggregate(frames)
        assert metrics.average_cents_deviation == pytest.approx(17.0)

    def test_rounded_to_one_decimal(self):
        frames = [_voiced(1, 0), _voiced(2, 10), _voiced(10, 20)]
        metrics = MetricsAggregator().aggregate(frames)
        assert metrics.time_in_tune_percent == 66.7
        assert metrics.average_cents_deviation == 4.3


class TestSessionAnalyzer:
    def test_report_combines_events_and_metrics(self):
        frames = frames_from_runs([("A4", 150), (None, 50), ("C5", 80), (None, 50), ("C5", 120)])
        report = SessionAnalyzer(min_hold_ms=100).analyze(frames)
        assert report.mode == "freestyle"
        assert report.metrics.notes_practiced == ["A4", "C5"]
        assert [e.note_id for e in report.events] == ["A4", "C5"]
        assert report.metrics.time_in_tune_percent == 100.0

    def test_empty_buffer_report(self):
        report = SessionAnalyzer().analyze([], mode="exercise")
        assert report.mode == "exercise"
        assert report.events == []
        assert report.metrics.notes_practiced == []

    def test_report_is_plain_data(self):
        frames = frames_from_runs([("E3", 200)])
        data = SessionAnalyzer().analyze(frames).model_dump(mode="json")
        assert data["metrics"]["notes_practiced"] == ["E3"]
        assert data["events"][0]["note_id"] == "E3"
