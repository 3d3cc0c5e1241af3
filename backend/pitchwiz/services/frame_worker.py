import logging
import queue
import threading
from typing import Optional

import numpy as np

from pitchwiz.services.pipeline import PitchPipeline

logger = logging.getLogger(__name__)

_STOP = object()


class FrameWorker:
    """Bounded hand-off between an audio capture callback and the pipeline.

    The capture side calls submit(), which never blocks: when the queue is
    full the frame is dropped. A background thread drains the queue and
    runs each frame through the pipeline in arrival order.
    """

    def __init__(self, pipeline: PitchPipeline, queue_size: Optional[int] = None):
        self.pipeline = pipeline
        self._queue: "queue.Queue" = queue.Queue(maxsize=queue_size or pipeline.config.queue_size)
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self._submit_lock = threading.Lock()
        self._stopping = False
        self.dropped_frames = 0
        self.processed_frames = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    def start(self):
        with self._state_lock:
            if self.is_running:
                return
            with self._submit_lock:
                self._stopping = False
            self._thread = threading.Thread(target=self._run, name="pitch-frame-worker", daemon=True)
            self._thread.start()
        logger.info("Frame worker started")

    def submit(self, samples: np.ndarray) -> bool:
        """Queue a captured frame. Returns False if it had to be dropped.

        Frames offered once stop() has begun are refused, so every accepted
        frame is queued ahead of the stop marker.
        """
        frame = np.array(samples, dtype=np.float32, copy=True)
        with self._submit_lock:
            if self._stopping or not self.is_running:
                return False
            try:
                self._queue.put_nowait(frame)
                return True
            except queue.Full:
                self.dropped_frames += 1
        logger.warning(f"Frame queue full, dropped frame ({self.dropped_frames} total)")
        return False

    def stop(self, timeout: Optional[float] = None):
        """Process everything already queued, then stop the thread. Idempotent."""
        with self._state_lock:
            thread = self._thread
            if thread is None:
                return
            with self._submit_lock:
                self._stopping = True
            self._queue.put(_STOP)
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Frame worker did not stop within timeout")
                return
            self._thread = None
            self._stopping = False
        logger.info(f"Frame worker stopped after {self.processed_frames} frames")

    def _run(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            try:
                self.pipeline.process(item)
                self.processed_frames += 1
            except Exception:
                logger.exception("Pipeline failed on a frame")
