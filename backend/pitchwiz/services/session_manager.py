from fastapi import WebSocket
from typing import Dict, Optional
import logging

from pitchwiz.core.config import settings
from pitchwiz.schemas.config import PitchConfig
from pitchwiz.schemas.pitch import SessionMode, SessionReport
from pitchwiz.services.analyzers.exercise import calibrate_note, score_attempt
from pitchwiz.services.analyzers.interval import score_interval
from pitchwiz.services.analyzers.note_mapper import parse_note_id
from pitchwiz.services.audio_engine import AudioEngine
from pitchwiz.services.pipeline import PitchPipeline

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, websocket: WebSocket, config: Optional[PitchConfig] = None):
        self.websocket = websocket
        self.pipeline = PitchPipeline(config or settings.pitch_config())
        self.engine = AudioEngine(self.pipeline)

        # State
        self.mode: Optional[SessionMode] = None
        self.target_note: Optional[str] = None
        self.reference_note: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self.pipeline.recorder.is_recording

    def start_recording(
        self,
        mode: SessionMode = "freestyle",
        target_note: Optional[str] = None,
        reference_note: Optional[str] = None,
    ) -> bool:
        if mode in ("exercise", "interval"):
            if target_note is None:
                raise ValueError(f"{mode.capitalize()} mode needs a target note")
            parse_note_id(target_note)
        if mode == "interval":
            if reference_note is None:
                raise ValueError("Interval mode needs a reference note")
            parse_note_id(reference_note)

        if not self.pipeline.start_session():
            return False
        self.mode = mode
        self.target_note = target_note
        self.reference_note = reference_note
        logger.info(f"Recording started (mode={mode}, reference={reference_note}, target={target_note})")
        return True

    def stop_recording(self) -> Optional[SessionReport]:
        """Freeze the session and build its report. None if nothing was recording."""
        if self.mode is None:
            return None
        mode = self.mode
        report = self.pipeline.finish_session(mode)
        if report is None:
            return None

        frames = self.pipeline.recorder.buffer.frames
        if mode == "exercise" and self.target_note:
            report.note_score = score_attempt(
                frames,
                self.target_note,
                reference_a4_hz=self.pipeline.config.reference_a4_hz,
                min_hold_ms=self.pipeline.config.min_hold_ms,
            )
        elif mode == "calibration":
            report.calibrated_note = calibrate_note(frames)
        elif mode == "interval" and self.target_note and self.reference_note:
            report.interval_score = score_interval(
                frames,
                self.reference_note,
                self.target_note,
                practiced=report.metrics.notes_practiced,
            )

        self.mode = None
        self.target_note = None
        self.reference_note = None
        logger.info(
            f"Session report: {report.metrics.voiced_frames}/{report.metrics.total_frames} voiced, "
            f"in tune {report.metrics.time_in_tune_percent}%, notes {report.metrics.notes_practiced}"
        )
        return report

    def cancel_recording(self):
        self.pipeline.recorder.cancel()
        self.mode = None
        self.target_note = None
        self.reference_note = None

    def reset(self):
        """Reset session state for a new recording while keeping WebSocket alive."""
        self.cancel_recording()
        self.engine.reset()
        logger.info("Session state reset (WebSocket remains open)")

    async def send_json(self, data: dict):
        await self.websocket.send_json(data)


class SessionManager:
    def __init__(self):
        self.active_sessions: Dict[str, Session] = {}

    async def connect(self, session_id: str, websocket: WebSocket):
        await websocket.accept()
        session = Session(websocket)
        self.active_sessions[session_id] = session
        logger.info(f"Session {session_id} connected")

    def disconnect(self, session_id: str):
        if session_id in self.active_sessions:
            self.active_sessions[session_id].cancel_recording()
            del self.active_sessions[session_id]
            logger.info(f"Session {session_id} disconnected")

    def get_session(self, session_id: str) -> Optional[Session]:
        return self.active_sessions.get(session_id)


manager = SessionManager()
