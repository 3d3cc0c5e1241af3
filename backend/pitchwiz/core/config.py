import logging
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from pitchwiz.core.errors import InvalidConfiguration
from pitchwiz.schemas.config import PitchConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    CONFIG_PATH: Optional[str] = None  # YAML file with a "pitch" section

    SAMPLE_RATE: int = 44100
    FRAME_SIZE: int = 4096
    REFERENCE_A4_HZ: float = 440.0
    SMOOTHING_FACTOR: float = 0.7
    IN_TUNE_THRESHOLD_CENTS: float = 5.0
    MIN_HOLD_MS: int = 100
    MIN_FREQ_HZ: float = 40.0
    MAX_FREQ_HZ: float = 1200.0
    SILENCE_THRESHOLD: float = 0.01
    RECORD_INTERVAL_MS: int = 50
    QUEUE_SIZE: int = 32

    class Config:
        env_file = ".env"
        env_prefix = "PITCHWIZ_"
        extra = "ignore"

    def pitch_config(self) -> PitchConfig:
        """Build the validated pipeline configuration.

        A YAML file named by CONFIG_PATH wins over the individual env values.
        """
        if self.CONFIG_PATH:
            logger.info(f"Loading pitch config from {self.CONFIG_PATH}")
            return PitchConfig.from_yaml(self.CONFIG_PATH)

        try:
            return PitchConfig(
                sample_rate=self.SAMPLE_RATE,
                frame_size=self.FRAME_SIZE,
                reference_a4_hz=self.REFERENCE_A4_HZ,
                smoothing_factor=self.SMOOTHING_FACTOR,
                in_tune_threshold_cents=self.IN_TUNE_THRESHOLD_CENTS,
                min_hold_ms=self.MIN_HOLD_MS,
                min_freq_hz=self.MIN_FREQ_HZ,
                max_freq_hz=self.MAX_FREQ_HZ,
                silence_threshold=self.SILENCE_THRESHOLD,
                record_interval_ms=self.RECORD_INTERVAL_MS,
                queue_size=self.QUEUE_SIZE,
            )
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid pitch settings: {e}") from e


settings = Settings()
