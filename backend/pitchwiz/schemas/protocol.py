from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from pitchwiz.schemas.config import PitchConfig
from pitchwiz.schemas.pitch import IntervalDirection, IntervalProblem, PitchFrame, SessionMode, SessionReport


class StreamPayload(BaseModel):
    type: Literal["audio"] = "audio"
    timestamp: Optional[float] = Field(None, description="Client timestamp of the audio chunk")
    audio_chunk: str = Field(..., description="Base64 encoded audio chunk")
    encoding: Literal["wav", "pcm_f32"] = Field("wav", description="Container of audio_chunk")


class ConfigPayload(BaseModel):
    type: Literal["config"]
    reference_a4_hz: Optional[float] = None
    smoothing_factor: Optional[float] = None
    in_tune_threshold_cents: Optional[float] = None
    min_hold_ms: Optional[int] = None
    min_freq_hz: Optional[float] = None
    max_freq_hz: Optional[float] = None

    def changes(self) -> dict:
        return self.model_dump(exclude={"type"}, exclude_none=True)


class StartRecordingPayload(BaseModel):
    type: Literal["start_recording"]
    mode: SessionMode = "freestyle"
    target_note: Optional[str] = Field(None, description="Target note id for exercise and interval modes, e.g. 'A4'")
    reference_note: Optional[str] = Field(None, description="Reference note id for interval mode")


class StopRecordingPayload(BaseModel):
    type: Literal["stop_recording"]


class CancelRecordingPayload(BaseModel):
    type: Literal["cancel_recording"]


class IntervalProblemPayload(BaseModel):
    type: Literal["interval_problem"]
    level: str = "intermediate"
    direction: IntervalDirection = "asc"
    lowest: str = Field("C3", description="Lowest note of the singer's range")
    highest: str = Field("C5", description="Highest note of the singer's range")


class PitchResponse(BaseModel):
    type: Literal["pitch"] = "pitch"
    frames: List[PitchFrame]


class ConfigResponse(BaseModel):
    type: Literal["config"] = "config"
    config: PitchConfig


class RecordingStatusResponse(BaseModel):
    type: Literal["recording_status"] = "recording_status"
    is_recording: bool
    mode: Optional[SessionMode] = None


class ReportResponse(BaseModel):
    type: Literal["session_report"] = "session_report"
    report: SessionReport


class IntervalProblemResponse(BaseModel):
    type: Literal["interval_problem"] = "interval_problem"
    problem: IntervalProblem


class ErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    message: str
