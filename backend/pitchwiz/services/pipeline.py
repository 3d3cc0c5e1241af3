import logging
from typing import Callable, List, Optional

import numpy as np

from pitchwiz.schemas.config import PitchConfig
from pitchwiz.schemas.pitch import PitchFrame, SessionReport, SessionMode, Voicing
from pitchwiz.services.analyzers.note_mapper import to_note
from pitchwiz.services.analyzers.pitch_estimator import PitchEstimator
from pitchwiz.services.analyzers.silence_gate import SilenceGate
from pitchwiz.services.analyzers.smoother import smooth
from pitchwiz.services.analyzers.summarizer import SessionAnalyzer
from pitchwiz.services.session_recorder import SessionRecorder

logger = logging.getLogger(__name__)

FrameSubscriber = Callable[[PitchFrame], None]


class PitchPipeline:
    """Per-stream pitch tracking state: gate -> estimator -> smoother -> mapper.

    Owns the previous smoothed frequency, the configuration and the session
    recorder, so nothing about a stream lives in module globals.
    """

    def __init__(self, config: Optional[PitchConfig] = None):
        self.config = config or PitchConfig()
        self.recorder = SessionRecorder(record_interval_ms=self.config.record_interval_ms)
        self.last_frequency: Optional[float] = None
        self.samples_processed = 0
        self._subscribers: List[FrameSubscriber] = []
        self._build_stages()

    def _build_stages(self):
        self.gate = SilenceGate(self.config.silence_threshold)
        self.estimator = PitchEstimator(
            sample_rate=self.config.sample_rate,
            min_freq_hz=self.config.min_freq_hz,
            max_freq_hz=self.config.max_freq_hz,
        )
        self.recorder.record_interval_ms = self.config.record_interval_ms

    # Configuration

    def update_config(self, **changes) -> PitchConfig:
        """Apply validated changes; raises InvalidConfiguration and keeps the
        current config if any value is out of bounds."""
        self.config = self.config.updated(**changes)
        self._build_stages()
        logger.info(f"Pipeline config updated: {changes}")
        return self.config

    def set_reference_frequency(self, frequency_hz: float) -> PitchConfig:
        return self.update_config(reference_a4_hz=frequency_hz)

    def set_smoothing_factor(self, factor: float) -> PitchConfig:
        return self.update_config(smoothing_factor=factor)

    # Live subscribers

    def subscribe(self, callback: FrameSubscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, frame: PitchFrame):
        for callback in list(self._subscribers):
            try:
                callback(frame)
            except Exception:
                logger.exception("Pitch subscriber failed")

    # Per-frame path

    def stream_time_ms(self) -> int:
        return int(self.samples_processed * 1000 / self.config.sample_rate)

    def process(self, samples: np.ndarray, timestamp_ms: Optional[int] = None) -> PitchFrame:
        """Analyse one frame and return its PitchFrame.

        Silence and unpitched input come back as a frame with all-None note
        fields; nothing on this path raises for audio content.
        """
        if timestamp_ms is None:
            timestamp_ms = self.stream_time_ms()
        self.samples_processed += len(samples)

        frame = self._analyze(samples, timestamp_ms)

        self.recorder.record(frame)
        self._publish(frame)
        return frame

    def _analyze(self, samples: np.ndarray, timestamp_ms: int) -> PitchFrame:
        if self.gate.classify(samples) is Voicing.SILENT:
            self.last_frequency = None
            return PitchFrame.silent(timestamp_ms)

        frequency = self.estimator.estimate(samples, self.config.sample_rate)
        if frequency is None:
            self.last_frequency = None
            return PitchFrame.silent(timestamp_ms)

        self.last_frequency = smooth(self.last_frequency, frequency, self.config.smoothing_factor)
        coordinates = to_note(self.last_frequency, self.config.reference_a4_hz)

        return PitchFrame(
            frequency_hz=self.last_frequency,
            note=coordinates.note,
            octave=coordinates.octave,
            cents_deviation=coordinates.cents,
            timestamp_ms=timestamp_ms,
        )

    def reset(self):
        """Forget smoothing history and stream time, e.g. for a new connection."""
        self.last_frequency = None
        self.samples_processed = 0

    # Sessions

    def start_session(self) -> bool:
        return self.recorder.start(start_ms=self.stream_time_ms())

    def finish_session(self, mode: SessionMode = "freestyle") -> Optional[SessionReport]:
        buffer = self.recorder.stop()
        if buffer is None:
            return None
        analyzer = SessionAnalyzer(
            in_tune_threshold_cents=self.config.in_tune_threshold_cents,
            min_hold_ms=self.config.min_hold_ms,
        )
        return analyzer.analyze(buffer.frames, mode)
