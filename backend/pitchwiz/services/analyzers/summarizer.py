from typing import Sequence

from pitchwiz.schemas.pitch import PitchFrame, SessionMetrics, SessionMode, SessionReport
from pitchwiz.services.analyzers.segmenter import DEFAULT_MIN_HOLD_MS, notes_practiced, segment_notes

DEFAULT_IN_TUNE_THRESHOLD_CENTS = 5.0


class MetricsAggregator:
    def __init__(self, in_tune_threshold_cents: float = DEFAULT_IN_TUNE_THRESHOLD_CENTS):
        self.in_tune_threshold_cents = in_tune_threshold_cents

    def aggregate(self, frames: Sequence[PitchFrame]) -> SessionMetrics:
        if not frames:
            return SessionMetrics()

        voiced = 0
        in_tune = 0
        total_deviation = 0.0

        for frame in frames:
            if frame.cents_deviation is None:
                continue
            deviation = abs(frame.cents_deviation)
            voiced += 1
            total_deviation += deviation
            if deviation < self.in_tune_threshold_cents:
                in_tune += 1

        average = total_deviation / voiced if voiced else 0.0
        in_tune_percent = in_tune / voiced * 100 if voiced else 0.0

        return SessionMetrics(
            average_cents_deviation=round(average, 1),
            time_in_tune_percent=round(in_tune_percent, 1),
            duration_ms=frames[-1].timestamp_ms - frames[0].timestamp_ms,
            total_frames=len(frames),
            voiced_frames=voiced,
            in_tune_frames=in_tune,
        )


class SessionAnalyzer:
    """Turns a frozen session buffer into hold events and summary metrics."""

    def __init__(
        self,
        in_tune_threshold_cents: float = DEFAULT_IN_TUNE_THRESHOLD_CENTS,
        min_hold_ms: int = DEFAULT_MIN_HOLD_MS,
    ):
        self.aggregator = MetricsAggregator(in_tune_threshold_cents)
        self.min_hold_ms = min_hold_ms

    def analyze(self, frames: Sequence[PitchFrame], mode: SessionMode = "freestyle") -> SessionReport:
        events = segment_notes(frames, self.min_hold_ms)
        metrics = self.aggregator.aggregate(frames).model_copy(
            update={"notes_practiced": notes_practiced(events)}
        )
        return SessionReport(mode=mode, metrics=metrics, events=events)
