from typing import List, Optional, Sequence

from pitchwiz.schemas.pitch import NoteHoldEvent, PitchFrame
from pitchwiz.services.analyzers.note_mapper import note_sort_key

DEFAULT_MIN_HOLD_MS = 100


def segment_notes(frames: Sequence[PitchFrame], min_hold_ms: int = DEFAULT_MIN_HOLD_MS) -> List[NoteHoldEvent]:
    """Split a frame sequence into runs of the same note.

    A run ends at the timestamp of the first frame that is silent or names a
    different note; a run still open at the end of the buffer ends at the last
    frame's timestamp. Runs shorter than `min_hold_ms` are scoops and glides:
    they are dropped but still end whatever note was being held.
    """
    events: List[NoteHoldEvent] = []
    current_note: Optional[str] = None
    current_start = 0

    def close(end_ms: int):
        if end_ms - current_start >= min_hold_ms:
            events.append(NoteHoldEvent(note_id=current_note, start_ms=current_start, end_ms=end_ms))

    for frame in frames:
        note_id = frame.note_id
        if note_id == current_note:
            continue

        if current_note is not None:
            close(frame.timestamp_ms)

        current_note = note_id
        current_start = frame.timestamp_ms

    if current_note is not None:
        close(frames[-1].timestamp_ms)

    return events


def notes_practiced(events: Sequence[NoteHoldEvent]) -> List[str]:
    """Distinct note ids of `events`, lowest pitch first."""
    return sorted({event.note_id for event in events}, key=note_sort_key)
