from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Voicing(str, Enum):
    VOICED = "voiced"
    SILENT = "silent"


class NoteCoordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    note: str = Field(..., description="Chromatic note name, e.g. 'A#'")
    octave: int = Field(..., description="Scientific pitch octave (A4 = 440 Hz by default)")
    cents: float = Field(..., description="Signed deviation from the nearest note in cents")

    @property
    def note_id(self) -> str:
        return f"{self.note}{self.octave}"


class PitchFrame(BaseModel):
    """One per-tick estimate. All note fields are None when no pitch was found."""

    model_config = ConfigDict(frozen=True)

    frequency_hz: Optional[float] = Field(None, description="Smoothed fundamental in Hz")
    note: Optional[str] = None
    octave: Optional[int] = None
    cents_deviation: Optional[float] = None
    timestamp_ms: int = Field(..., description="Milliseconds since stream or session start")

    @model_validator(mode="after")
    def _check_note_fields(self) -> "PitchFrame":
        fields = (self.frequency_hz, self.note, self.octave, self.cents_deviation)
        set_count = sum(value is not None for value in fields)
        if set_count not in (0, len(fields)):
            raise ValueError("frequency, note, octave and cents must be all set or all None")
        return self

    @property
    def is_voiced(self) -> bool:
        return self.frequency_hz is not None

    @property
    def note_id(self) -> Optional[str]:
        if self.note is None:
            return None
        return f"{self.note}{self.octave}"

    @classmethod
    def silent(cls, timestamp_ms: int) -> "PitchFrame":
        return cls(timestamp_ms=timestamp_ms)


class NoteHoldEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    note_id: str
    start_ms: int
    end_ms: int

    @model_validator(mode="after")
    def _check_order(self) -> "NoteHoldEvent":
        if self.end_ms < self.start_ms:
            raise ValueError(f"end_ms ({self.end_ms}) precedes start_ms ({self.start_ms})")
        return self

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


class SessionMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    average_cents_deviation: float = Field(0.0, description="Mean |cents| over voiced frames")
    time_in_tune_percent: float = Field(0.0, ge=0, le=100)
    notes_practiced: List[str] = Field(default_factory=list, description="Held notes, low to high")
    duration_ms: int = 0
    total_frames: int = 0
    voiced_frames: int = 0
    in_tune_frames: int = 0


class NoteScore(BaseModel):
    """Result of one target-note exercise attempt."""

    model_config = ConfigDict(frozen=True)

    note_id: str
    score: float = Field(..., ge=0, le=100)
    held_ms: int = Field(..., ge=0, description="Longest qualifying hold of the target note")
    sampled_at: datetime
    feedback: str


IntervalDirection = Literal["asc", "desc", "random"]


class IntervalProblem(BaseModel):
    """A reference note and the note an interval away that the singer must find."""

    model_config = ConfigDict(frozen=True)

    level: str
    interval_name: str = Field(..., description="e.g. 'Perfect 5th'")
    semitones: int = Field(..., ge=0)
    direction: Literal["asc", "desc"]
    reference_note: str
    target_note: str


class IntervalScore(BaseModel):
    """Result of one interval attempt."""

    model_config = ConfigDict(frozen=True)

    reference_note: str
    target_note: str
    hit: bool = Field(..., description="The target was held long enough to count as practiced")
    score: float = Field(..., ge=0, le=100)
    average_cents: int = Field(0, ge=0, description="Mean |cents| on the target note")
    glide_percent: int = Field(0, ge=0, le=100, description="Share of singing on neither note")
    notes_sung: List[str] = Field(default_factory=list)
    sampled_at: datetime
    feedback: str


SessionMode = Literal["freestyle", "exercise", "calibration", "interval"]


class SessionReport(BaseModel):
    mode: SessionMode = "freestyle"
    metrics: SessionMetrics
    events: List[NoteHoldEvent] = []
    note_score: Optional[NoteScore] = None
    calibrated_note: Optional[str] = None
    interval_score: Optional[IntervalScore] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
