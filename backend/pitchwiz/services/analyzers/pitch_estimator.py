"""Time-domain autocorrelation pitch estimation.

The estimator searches the autocorrelation of a voiced frame for the lag
(period) with the strongest self-similarity inside a configured frequency
band, then refines it to sub-sample precision with parabolic interpolation.
Working in the time domain needs no FFT and favours the period of the whole
waveform over energy concentrated in an upper harmonic, which matters for
singing voices. Narrowing the band to the singer's range is the main defence
against octave errors.

The raw correlation decides *which* period wins, because its shrinking
overlap favours the shortest period. Its peaks sit a few lags early when a
frame holds only a few periods, so the exact position is taken from the
normalized square difference function (NSDF, as in the McLeod pitch method),
whose maximum lies on the true period of a periodic frame.

The inner correlation loop is O(frame_size * lag_range) and runs once per
audio callback, so it is compiled with Numba.
"""

import logging
from typing import Optional

from numba import jit  # type: ignore
import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

DEFAULT_MIN_FREQ_HZ = 40.0
DEFAULT_MAX_FREQ_HZ = 1200.0


@jit(nopython=True)  # type: ignore
def _autocorrelate_numba(
    frame: NDArray[np.float64],
    first_lag: int,
    last_lag: int,
) -> NDArray[np.float64]:
    """Raw autocorrelation for every lag in [first_lag, last_lag]. (Numba JIT-compiled)

    Args:
        frame: Mono samples.
        first_lag: Smallest lag to evaluate (inclusive).
        last_lag: Largest lag to evaluate (inclusive), below len(frame).

    Returns:
        Array of length last_lag + 1; entries outside the range stay 0.
    """
    size = frame.shape[0]
    correlations = np.zeros(last_lag + 1, dtype=np.float64)
    for lag in range(first_lag, last_lag + 1):
        total = 0.0
        for i in range(size - lag):
            total += frame[i] * frame[i + lag]
        correlations[lag] = total
    return correlations


class PitchEstimator:
    """Estimates the fundamental frequency of a single voiced frame.

    Args:
        sample_rate: Default sample rate used when `estimate` is not given one.
        min_freq_hz: Lowest fundamental searched (sets the longest lag).
        max_freq_hz: Highest fundamental searched (sets the shortest lag).
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        min_freq_hz: float = DEFAULT_MIN_FREQ_HZ,
        max_freq_hz: float = DEFAULT_MAX_FREQ_HZ,
    ):
        if min_freq_hz <= 0 or min_freq_hz >= max_freq_hz:
            raise ValueError(f"Invalid frequency band [{min_freq_hz}, {max_freq_hz}] Hz.")
        self.sample_rate = sample_rate
        self.min_freq_hz = min_freq_hz
        self.max_freq_hz = max_freq_hz

    def lag_bounds(self, sample_rate: int, frame_size: int) -> tuple[int, int]:
        """Integer lag search range for a frame, clamped to what the frame can hold."""
        min_lag = max(1, int(sample_rate // self.max_freq_hz))
        max_lag = min(int(sample_rate // self.min_freq_hz), frame_size - 2)
        return min_lag, max_lag

    def estimate(self, frame: np.ndarray, sample_rate: Optional[int] = None) -> Optional[float]:
        """Return the fundamental frequency of `frame` in Hz, or None for no pitch.

        The best lag is the highest positive local maximum of the normalised
        autocorrelation inside the band. A monotonically decaying region at
        the short-lag edge is not a peak, so it cannot masquerade as a very
        high pitch. That lag is then moved to the top of the same peak in the
        NSDF and refined there. When parabolic refinement is ill-conditioned
        the integer lag is used instead.
        """
        sr = sample_rate or self.sample_rate
        if len(frame) == 0:
            return None

        samples = np.ascontiguousarray(frame, dtype=np.float64)
        min_lag, max_lag = self.lag_bounds(sr, len(samples))
        if min_lag > max_lag:
            return None

        energy = float(np.dot(samples, samples))
        if not np.isfinite(energy) or energy <= 0.0:
            return None

        # One extra lag on each side so band-edge candidates have neighbours.
        first_lag = max(1, min_lag - 1)
        last_lag = max_lag + 1
        raw = _autocorrelate_numba(samples, first_lag, last_lag)

        best_lag = self._best_peak(raw / energy, min_lag, max_lag, first_lag, last_lag)
        if best_lag is None:
            return None

        nsdf = self._normalized_difference(samples, raw)
        best_lag = self._climb(nsdf, best_lag, max(min_lag, first_lag + 1), min(max_lag, last_lag - 1))
        return sr / self._refine_lag(nsdf, best_lag)

    @staticmethod
    def _normalized_difference(samples: NDArray[np.float64], raw: NDArray[np.float64]) -> NDArray[np.float64]:
        """NSDF: 2 * r(lag) / (energy of the two overlapping segments). 1.0 means identical."""
        size = len(samples)
        lags = np.arange(len(raw))
        cumulative = np.concatenate(([0.0], np.cumsum(samples * samples)))
        head = cumulative[size - lags]
        tail = cumulative[size] - cumulative[lags]
        denominator = head + tail

        nsdf = np.zeros_like(raw)
        np.divide(2.0 * raw, denominator, out=nsdf, where=denominator > 0)
        return nsdf

    @staticmethod
    def _climb(values: NDArray[np.float64], lag: int, low: int, high: int) -> int:
        """Walk from `lag` to the top of its peak in `values`, staying in [low, high]."""
        while lag < high and values[lag + 1] > values[lag]:
            lag += 1
        while lag > low and values[lag - 1] > values[lag]:
            lag -= 1
        return lag

    @staticmethod
    def _best_peak(
        correlations: NDArray[np.float64],
        min_lag: int,
        max_lag: int,
        first_lag: int,
        last_lag: int,
    ) -> Optional[int]:
        lags = np.arange(max(min_lag, first_lag + 1), min(max_lag, last_lag - 1) + 1)
        if len(lags) == 0:
            return None

        centre = correlations[lags]
        is_peak = (centre > correlations[lags - 1]) & (centre >= correlations[lags + 1]) & (centre > 0)
        if not np.any(is_peak):
            return None

        peak_lags = lags[is_peak]
        return int(peak_lags[np.argmax(correlations[peak_lags])])

    @staticmethod
    def _refine_lag(correlations: NDArray[np.float64], lag: int) -> float:
        """Fractional lag from a parabola through the peak and its neighbours."""
        y1 = correlations[lag - 1]
        y2 = correlations[lag]
        y3 = correlations[lag + 1]

        denominator = 2 * (2 * y2 - y1 - y3)
        if denominator == 0:
            logger.debug(f"Flat correlation peak at lag {lag}, skipping interpolation")
            return float(lag)

        refined = lag + (y3 - y1) / denominator
        if refined <= 0 or abs(refined - lag) > 1:
            return float(lag)
        return float(refined)
