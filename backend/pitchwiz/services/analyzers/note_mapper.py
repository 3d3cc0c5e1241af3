import math
import re
from typing import List, Tuple

from pitchwiz.core.errors import MalformedNoteIdentifier
from pitchwiz.schemas.pitch import NoteCoordinates

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
A4_INDEX = NOTE_NAMES.index("A")
A4_OCTAVE = 4

_NOTE_ID_PATTERN = re.compile(r"^([A-G]#?)(-?\d+)$")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_note(frequency_hz: float, reference_a4_hz: float = 440.0) -> NoteCoordinates:
    """Map a frequency to the nearest equal-tempered note and its cents offset."""
    if frequency_hz <= 0:
        raise ValueError(f"Frequency must be positive, got {frequency_hz}")

    semitones_from_a4 = 12 * math.log2(frequency_hz / reference_a4_hz)
    nearest = _round_half_up(semitones_from_a4)
    cents = _round_half_up((semitones_from_a4 - nearest) * 100)

    # Semitones above C0 of the nearest note
    absolute = nearest + A4_OCTAVE * 12 + A4_INDEX
    octave, index = divmod(absolute, 12)

    return NoteCoordinates(note=NOTE_NAMES[index], octave=octave, cents=float(cents))


def parse_note_id(note_id: str) -> Tuple[str, int]:
    """Split "A#4" into ("A#", 4). Anything else is a programming error."""
    match = _NOTE_ID_PATTERN.match(note_id) if isinstance(note_id, str) else None
    if not match:
        raise MalformedNoteIdentifier(f"Invalid note format: {note_id!r}")
    return match.group(1), int(match.group(2))


def note_sort_key(note_id: str) -> int:
    """Semitones above C0; orders note ids by pitch height."""
    note, octave = parse_note_id(note_id)
    return octave * 12 + NOTE_NAMES.index(note)


def note_to_frequency(note_id: str, reference_a4_hz: float = 440.0) -> float:
    semitones_from_a4 = note_sort_key(note_id) - (A4_OCTAVE * 12 + A4_INDEX)
    return reference_a4_hz * 2 ** (semitones_from_a4 / 12)


def note_range(lowest: str, highest: str) -> List[str]:
    """Every chromatic note id from `lowest` to `highest`, inclusive."""
    start = note_sort_key(lowest)
    end = note_sort_key(highest)
    if end < start:
        raise ValueError(f"Highest note {highest} is below lowest note {lowest}")

    notes = []
    for value in range(start, end + 1):
        octave, index = divmod(value, 12)
        notes.append(f"{NOTE_NAMES[index]}{octave}")
    return notes
