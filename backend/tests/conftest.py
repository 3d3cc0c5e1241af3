from typing import List, Optional, Sequence, Tuple

import numpy as np
import pytest

from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.analyzers.note_mapper import note_to_frequency, parse_note_id

SAMPLE_RATE = 44100
FRAME_SIZE = 4096


def sine(frequency_hz: float, n: int = FRAME_SIZE, sample_rate: int = SAMPLE_RATE, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(n) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency_hz * t)).astype(np.float32)


def frames_from_runs(runs: Sequence[Tuple[Optional[str], int]], step_ms: int = 10, cents: float = 0.0) -> List[PitchFrame]:
    """Build a frame sequence from (note_id or None, duration_ms) runs."""
    frames = []
    t = 0
    for note_id, duration_ms in runs:
        for offset in range(0, duration_ms, step_ms):
            if note_id is None:
                frames.append(PitchFrame.silent(t + offset))
            else:
                note, octave = parse_note_id(note_id)
                frames.append(
                    PitchFrame(
                        frequency_hz=note_to_frequency(note_id) * 2 ** (cents / 1200),
                        note=note,
                        octave=octave,
                        cents_deviation=cents,
                        timestamp_ms=t + offset,
                    )
                )
        t += duration_ms
    return frames


@pytest.fixture
def a440() -> np.ndarray:
    return sine(440.0)
