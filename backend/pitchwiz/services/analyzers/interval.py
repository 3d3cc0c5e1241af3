"""Interval practice: problem generation and attempt scoring.

A problem gives the singer a reference note and asks for the note a named
interval above or below it, inside the singer's range. An attempt counts as a
hit when the target note was held long enough to be practiced; the score is
then 100 minus the average cents error on the target. Time spent on neither
note is reported as glide.
"""

import logging
import math
import random
from datetime import datetime, timezone
from typing import Dict, List, NamedTuple, Optional, Sequence

from pitchwiz.schemas.pitch import IntervalDirection, IntervalProblem, IntervalScore, PitchFrame
from pitchwiz.services.analyzers.exercise import frame_durations
from pitchwiz.services.analyzers.note_mapper import note_range, parse_note_id
from pitchwiz.services.analyzers.segmenter import DEFAULT_MIN_HOLD_MS, notes_practiced, segment_notes

logger = logging.getLogger(__name__)

MIN_TARGET_MS = 80
MIN_GLIDE_MS = 180
DEFAULT_LOWEST_NOTE = "C3"
DEFAULT_HIGHEST_NOTE = "C5"


class Interval(NamedTuple):
    name: str
    semitones: int


_FUNDAMENTAL = [
    Interval("Major 2nd", 2),
    Interval("Major 3rd", 4),
    Interval("Perfect 5th", 7),
    Interval("Octave", 12),
]
_BASIC = [
    Interval("Minor 2nd", 1),
    Interval("Minor 3rd", 3),
    Interval("Perfect 4th", 5),
    Interval("Major 6th", 9),
]
_TENSION = [
    Interval("Minor 6th", 8),
    Interval("Tritone", 6),
    Interval("Minor 7th", 10),
    Interval("Major 7th", 11),
]
_EXTENSIONS = [
    Interval("Minor 9th", 13),
    Interval("Major 9th", 14),
    Interval("Perfect 11th", 17),
    Interval("Augmented 11th", 18),
    Interval("Major 13th", 21),
]

# Each level adds to the pool of the one before it
INTERVAL_LEVELS: Dict[str, List[Interval]] = {
    "beginner": _FUNDAMENTAL,
    "intermediate": _FUNDAMENTAL + _BASIC,
    "advanced": _FUNDAMENTAL + _BASIC + _TENSION,
    "expert": _FUNDAMENTAL + _BASIC + _TENSION + _EXTENSIONS,
}


def generate_interval(
    level: str = "intermediate",
    direction: IntervalDirection = "asc",
    lowest: str = DEFAULT_LOWEST_NOTE,
    highest: str = DEFAULT_HIGHEST_NOTE,
    rng: Optional[random.Random] = None,
) -> IntervalProblem:
    """Pick an interval from `level` with both notes inside [lowest, highest].

    Intervals wider than the range are left out of the draw. Raises ValueError
    for an unknown level or direction, or when no interval fits at all.
    """
    if level not in INTERVAL_LEVELS:
        raise ValueError(f"Unknown interval level {level!r}, expected one of {sorted(INTERVAL_LEVELS)}")
    if direction not in ("asc", "desc", "random"):
        raise ValueError(f"Unknown interval direction {direction!r}")

    rng = rng or random.Random()
    notes = note_range(lowest, highest)
    pool = [interval for interval in INTERVAL_LEVELS[level] if interval.semitones < len(notes)]
    if not pool:
        raise ValueError(f"Range {lowest}-{highest} is too narrow for any {level} interval")

    interval = rng.choice(pool)
    resolved = direction if direction != "random" else rng.choice(["asc", "desc"])

    low = rng.randrange(len(notes) - interval.semitones)
    high = low + interval.semitones
    if resolved == "asc":
        reference, target = notes[low], notes[high]
    else:
        reference, target = notes[high], notes[low]

    return IntervalProblem(
        level=level,
        interval_name=interval.name,
        semitones=interval.semitones,
        direction=resolved,
        reference_note=reference,
        target_note=target,
    )


def score_interval(
    frames: Sequence[PitchFrame],
    reference_note: str,
    target_note: str,
    practiced: Optional[Sequence[str]] = None,
    min_hold_ms: int = DEFAULT_MIN_HOLD_MS,
) -> IntervalScore:
    """Score an interval attempt recorded in `frames`.

    `practiced` is the session's notes_practiced; it is derived from `frames`
    when not given.
    """
    parse_note_id(reference_note)
    parse_note_id(target_note)
    if practiced is None:
        practiced = notes_practiced(segment_notes(frames, min_hold_ms))

    voiced_ms = reference_ms = target_ms = 0
    target_cents = []
    for frame, duration in zip(frames, frame_durations(frames)):
        if not frame.is_voiced:
            continue
        voiced_ms += duration
        if frame.note_id == reference_note:
            reference_ms += duration
        elif frame.note_id == target_note:
            target_ms += duration
            target_cents.append(abs(frame.cents_deviation))

    average_cents = 0
    if target_ms >= MIN_TARGET_MS:
        average_cents = int(math.floor(sum(target_cents) / len(target_cents) + 0.5))

    glide_percent = 0
    if voiced_ms >= MIN_GLIDE_MS:
        glide_ms = voiced_ms - reference_ms - target_ms
        glide_percent = int(math.floor(glide_ms * 100 / voiced_ms + 0.5))

    hit = target_note in practiced
    if hit:
        score = float(max(0, 100 - average_cents))
        feedback = "Excellent! Target hit."
    elif practiced:
        score = 0.0
        feedback = f"You sang: {', '.join(practiced[:3])}. Target: {target_note}"
    else:
        score = 0.0
        feedback = "No pitch detected"

    logger.info(
        f"Interval {reference_note}->{target_note}: hit={hit}, score {score}, "
        f"±{average_cents}c, glide {glide_percent}%"
    )
    return IntervalScore(
        reference_note=reference_note,
        target_note=target_note,
        hit=hit,
        score=score,
        average_cents=average_cents,
        glide_percent=glide_percent,
        notes_sung=list(practiced),
        sampled_at=datetime.now(timezone.utc),
        feedback=feedback,
    )
