import threading
from typing import List, Tuple

from pitchwiz.core.errors import BufferFrozenError
from pitchwiz.schemas.pitch import PitchFrame


class SessionBuffer:
    """Append-only frame store for one recording session.

    One writer (the audio path) appends; any number of readers take
    snapshots of the published prefix without ever blocking the writer.
    Frames are immutable, so only the published length is shared state.
    """

    def __init__(self):
        self._frames: List[PitchFrame] = []
        self._published = 0
        self._frozen = False
        self._write_lock = threading.Lock()

    def append(self, frame: PitchFrame):
        with self._write_lock:
            if self._frozen:
                raise BufferFrozenError("Cannot append to a frozen session buffer")
            self._frames.append(frame)
            self._published = len(self._frames)

    def snapshot(self) -> Tuple[PitchFrame, ...]:
        count = self._published
        return tuple(self._frames[:count])

    def freeze(self):
        with self._write_lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def frames(self) -> Tuple[PitchFrame, ...]:
        return self.snapshot()

    def last(self):
        count = self._published
        return self._frames[count - 1] if count else None

    def __len__(self) -> int:
        return self._published
