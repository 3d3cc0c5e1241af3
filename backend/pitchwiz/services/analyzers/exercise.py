"""Target-note exercise scoring and range calibration.

An exercise attempt is a short recording in which the singer aims at one
note. Frames within two semitones of the target count as attempts at it; the
opening portion of those is dropped because singers scoop into a note.
Calibration captures (lowest / highest comfortable note) report the note the
singer spent the most frames on.

Limits are expressed in milliseconds of singing rather than frame counts,
since the recorded frame rate depends on frame size and the record throttle.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from pitchwiz.schemas.pitch import NoteScore, PitchFrame
from pitchwiz.services.analyzers.note_mapper import note_to_frequency
from pitchwiz.services.analyzers.segmenter import DEFAULT_MIN_HOLD_MS, segment_notes

logger = logging.getLogger(__name__)

ATTEMPT_WINDOW_CENTS = 200.0
MIN_ATTEMPT_MS = 180
GLIDE_TRIM_RATIO = 0.3
GLIDE_TRIM_MAX_MS = 1000
FREE_ERROR_CENTS = 5.0
PENALTY_PER_CENT = 2.0


def _feedback_for(score: float) -> str:
    if score >= 90:
        return "Perfect!"
    if score >= 70:
        return "Good!"
    if score >= 50:
        return "Okay"
    return "Try Again"


def frame_durations(frames: Sequence[PitchFrame]) -> List[int]:
    """Milliseconds each frame stands for: the gap to the next frame.

    The last frame repeats the previous gap; a lone frame covers 0 ms.
    """
    gaps = [later.timestamp_ms - earlier.timestamp_ms for earlier, later in zip(frames, frames[1:])]
    if not gaps:
        return [0] * len(frames)
    return gaps + [gaps[-1]]


def _near_target(frames: Sequence[PitchFrame], target_frequency_hz: float) -> List[Tuple[float, int]]:
    near = []
    for frame, duration in zip(frames, frame_durations(frames)):
        if frame.frequency_hz is None:
            continue
        cents = abs(1200 * math.log2(frame.frequency_hz / target_frequency_hz))
        if cents < ATTEMPT_WINDOW_CENTS:
            near.append((cents, duration))
    return near


def attempt_deviations(
    frames: Sequence[PitchFrame], target_frequency_hz: float
) -> List[float]:
    """Absolute cents distance to the target of every voiced frame near it."""
    return [cents for cents, _ in _near_target(frames, target_frequency_hz)]


def score_attempt(
    frames: Sequence[PitchFrame],
    target_note_id: str,
    reference_a4_hz: float = 440.0,
    min_hold_ms: int = DEFAULT_MIN_HOLD_MS,
) -> NoteScore:
    """Score an attempt at `target_note_id` from 0 to 100.

    Deviations up to FREE_ERROR_CENTS are free; beyond that each cent costs
    PENALTY_PER_CENT points.
    """
    target_hz = note_to_frequency(target_note_id, reference_a4_hz)
    near = _near_target(frames, target_hz)
    attempt_ms = sum(duration for _, duration in near)

    held_ms = max(
        (event.duration_ms for event in segment_notes(frames, min_hold_ms) if event.note_id == target_note_id),
        default=0,
    )

    if attempt_ms < MIN_ATTEMPT_MS:
        logger.info(f"Attempt at {target_note_id}: only {attempt_ms} ms near target")
        return NoteScore(
            note_id=target_note_id,
            score=0.0,
            held_ms=held_ms,
            sampled_at=datetime.now(timezone.utc),
            feedback="No pitch detected",
        )

    trim_ms = min(attempt_ms * GLIDE_TRIM_RATIO, GLIDE_TRIM_MAX_MS)
    settled = []
    skipped_ms = 0
    for cents, duration in near:
        if skipped_ms < trim_ms:
            skipped_ms += duration
            continue
        settled.append(cents)
    settled = settled or [cents for cents, _ in near]
    average = sum(settled) / len(settled)

    score = max(0, math.floor(100 - max(0.0, average - FREE_ERROR_CENTS) * PENALTY_PER_CENT + 0.5))
    logger.info(f"Attempt at {target_note_id}: avg {average:.1f} cents over {attempt_ms} ms, score {score}")

    return NoteScore(
        note_id=target_note_id,
        score=float(score),
        held_ms=held_ms,
        sampled_at=datetime.now(timezone.utc),
        feedback=_feedback_for(score),
    )


def calibrate_note(frames: Sequence[PitchFrame]) -> Optional[str]:
    """Most frequently sung note id in a calibration capture, None if silent."""
    counts = Counter(frame.note_id for frame in frames if frame.note_id is not None)
    if not counts:
        return None
    return counts.most_common(1)[0][0]
