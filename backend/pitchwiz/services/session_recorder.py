import logging
import threading
from typing import Dict, Optional

from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.session_buffer import SessionBuffer

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Collects pitch frames between start() and stop().

    Timestamps are rebased so the first tick after start() is close to 0.
    A frame is only stored once `record_interval_ms` has passed since the
    previously stored one, which keeps long sessions small.
    """

    def __init__(self, record_interval_ms: int = 50):
        self.record_interval_ms = record_interval_ms
        self.buffer: Optional[SessionBuffer] = None
        self.is_recording = False
        self._start_ms: Optional[int] = None
        self._last_stored_ms: Optional[int] = None
        self._lock = threading.Lock()

    def start(self, start_ms: Optional[int] = None) -> bool:
        """Begin a session. `start_ms` is the stream time of the session origin;
        when omitted the first recorded frame becomes the origin."""
        with self._lock:
            if self.is_recording:
                logger.warning("Already recording")
                return False
            self.buffer = SessionBuffer()
            self._start_ms = start_ms
            self._last_stored_ms = None
            self.is_recording = True
        logger.info("Recording started")
        return True

    def record(self, frame: PitchFrame) -> bool:
        """Store `frame` if a session is active and the throttle allows it."""
        with self._lock:
            if not self.is_recording:
                return False

            if self._start_ms is None:
                self._start_ms = frame.timestamp_ms
            relative_ms = max(0, frame.timestamp_ms - self._start_ms)

            if (
                self._last_stored_ms is not None
                and relative_ms - self._last_stored_ms < self.record_interval_ms
            ):
                return False

            self.buffer.append(frame.model_copy(update={"timestamp_ms": relative_ms}))
            self._last_stored_ms = relative_ms
            return True

    def stop(self) -> Optional[SessionBuffer]:
        """Freeze and return the session buffer.

        Returns only after any in-flight record() has finished. Calling it
        again returns the same frozen buffer.
        """
        with self._lock:
            if self.buffer is None:
                logger.warning("Not currently recording")
                return None
            if self.is_recording:
                self.is_recording = False
                self.buffer.freeze()
                logger.info(f"Recording stopped with {len(self.buffer)} frames")
            return self.buffer

    def cancel(self):
        """Stop without keeping anything."""
        with self._lock:
            if self.buffer is not None:
                self.buffer.freeze()
            self.buffer = None
            self.is_recording = False
            self._start_ms = None
            self._last_stored_ms = None
        logger.info("Recording cancelled")

    def status(self) -> Dict[str, object]:
        buffer = self.buffer
        last = buffer.last() if buffer is not None else None
        return {
            "is_recording": self.is_recording,
            "duration_ms": last.timestamp_ms if last is not None and self.is_recording else 0,
            "pitch_data_points": len(buffer) if buffer is not None else 0,
        }
