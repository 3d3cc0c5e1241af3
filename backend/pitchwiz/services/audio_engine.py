import base64
import io
import numpy as np
import soundfile as sf
import librosa
import logging
from typing import List, Literal

from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.analyzers.silence_gate import rms
from pitchwiz.services.pipeline import PitchPipeline

logger = logging.getLogger(__name__)

ChunkEncoding = Literal["wav", "pcm_f32"]


class AudioEngine:
    """Decodes streamed audio chunks and cuts them into analysis frames.

    Chunks arrive at whatever size the client sends; samples are carried over
    between chunks so the pipeline always sees exactly `frame_size` samples.
    """

    def __init__(self, pipeline: PitchPipeline):
        self.pipeline = pipeline
        self._buffer = np.array([], dtype=np.float32)
        self._chunk_count = 0

    @property
    def target_sr(self) -> int:
        return self.pipeline.config.sample_rate

    @property
    def frame_size(self) -> int:
        return self.pipeline.config.frame_size

    def process_stream(self, base64_chunk: str, encoding: ChunkEncoding = "wav") -> List[PitchFrame]:
        new_audio = self._decode_chunk(base64_chunk, encoding)
        self._chunk_count += 1

        if len(new_audio) == 0:
            logger.warning(f"Chunk #{self._chunk_count}: decode returned empty array")
            return []

        if self._chunk_count % 10 == 1:
            logger.debug(f"Chunk #{self._chunk_count}: len={len(new_audio)}, rms={rms(new_audio):.4f}")

        return self.process_samples(new_audio)

    def process_samples(self, samples: np.ndarray) -> List[PitchFrame]:
        self._buffer = np.concatenate((self._buffer, samples.astype(np.float32, copy=False)))

        frames = []
        while len(self._buffer) >= self.frame_size:
            frame, self._buffer = self._buffer[: self.frame_size], self._buffer[self.frame_size :]
            frames.append(self.pipeline.process(frame))
        return frames

    def reset(self):
        self._buffer = np.array([], dtype=np.float32)
        self._chunk_count = 0
        self.pipeline.reset()

    def _decode_chunk(self, base64_chunk: str, encoding: ChunkEncoding) -> np.ndarray:
        try:
            audio_bytes = base64.b64decode(base64_chunk)
            if encoding == "pcm_f32":
                # Raw little-endian float32 mono, already at the pipeline rate
                return np.frombuffer(audio_bytes, dtype="<f4").astype(np.float32)

            with io.BytesIO(audio_bytes) as b:
                y, sr = sf.read(b, dtype='float32')
            if y.ndim > 1:
                y = y.mean(axis=1)
            if sr != self.target_sr:
                y = librosa.resample(y, orig_sr=sr, target_sr=self.target_sr)
            return y
        except Exception as e:
            logger.warning(f"Chunk #{self._chunk_count + 1}: could not decode ({e})")
            return np.array([], dtype=np.float32)
