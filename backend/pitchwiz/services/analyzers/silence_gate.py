import numpy as np

from pitchwiz.schemas.pitch import Voicing

DEFAULT_SILENCE_THRESHOLD = 0.01


def rms(frame: np.ndarray) -> float:
    """Root-mean-square energy of a frame, 0 for an empty one."""
    if len(frame) == 0:
        return 0.0
    samples = np.asarray(frame, dtype=np.float64)
    return float(np.sqrt(np.mean(samples**2)))


class SilenceGate:
    """Classifies frames as silent or voiced by RMS energy."""

    def __init__(self, threshold: float = DEFAULT_SILENCE_THRESHOLD):
        self.threshold = threshold

    def classify(self, frame: np.ndarray) -> Voicing:
        # Empty or corrupted frames are treated as silence for that tick.
        if len(frame) == 0 or not np.all(np.isfinite(frame)):
            return Voicing.SILENT

        if rms(frame) < self.threshold:
            return Voicing.SILENT
        return Voicing.VOICED
