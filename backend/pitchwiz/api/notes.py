from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel
from typing import List

from pitchwiz.core.errors import MalformedNoteIdentifier
from pitchwiz.services.analyzers.note_mapper import note_range, note_to_frequency

router = APIRouter(prefix="/notes", tags=["notes"])


class NoteFrequency(BaseModel):
    note_id: str
    frequency_hz: float


def _reference(reference_a4_hz: float) -> float:
    if not 400 <= reference_a4_hz <= 480:
        raise HTTPException(status_code=422, detail="reference_a4_hz must be between 400 and 480")
    return reference_a4_hz


@router.get("/range", response_model=List[NoteFrequency])
def get_note_range(
    lowest: str = Query(..., description="Lowest note id, e.g. 'E2'"),
    highest: str = Query(..., description="Highest note id, e.g. 'G4'"),
    reference_a4_hz: float = 440.0,
):
    """Chromatic notes of a vocal range with their target frequencies."""
    reference = _reference(reference_a4_hz)
    try:
        notes = note_range(lowest, highest)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return [NoteFrequency(note_id=n, frequency_hz=note_to_frequency(n, reference)) for n in notes]


@router.get("/{note_id}", response_model=NoteFrequency)
def get_note(note_id: str, reference_a4_hz: float = 440.0):
    reference = _reference(reference_a4_hz)
    try:
        frequency = note_to_frequency(note_id, reference)
    except MalformedNoteIdentifier as e:
        raise HTTPException(status_code=422, detail=str(e))
    return NoteFrequency(note_id=note_id, frequency_hz=frequency)
