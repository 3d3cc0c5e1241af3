"""Pitch pipeline configuration.

`PitchConfig` holds every tunable the pipeline reads: capture format, tuning
reference, smoothing, the voice frequency band and the session analysis
thresholds. It can be built directly, from environment settings
(`pitchwiz.core.config.Settings.pitch_config`) or from a YAML file.
"""

from pathlib import Path
from typing import Any, Dict

import yaml  # PyYAML for YAML loading
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from pitchwiz.core.errors import InvalidConfiguration


class PitchConfig(BaseModel):
    """Validated settings for one pitch pipeline."""

    model_config = ConfigDict(frozen=True)

    sample_rate: int = Field(44100, gt=0, description="Capture sample rate in Hz.")
    frame_size: int = Field(4096, gt=0, description="Samples per analysis frame.")
    reference_a4_hz: float = Field(
        440.0, ge=400.0, le=480.0, description="Frequency assigned to A4."
    )
    smoothing_factor: float = Field(
        0.7,
        ge=0.0,
        le=1.0,
        description="Weight of the previous estimate. Higher is steadier but slower.",
    )
    in_tune_threshold_cents: float = Field(
        5.0, gt=0, description="Absolute deviation below which a frame counts as in tune."
    )
    min_hold_ms: int = Field(
        100, ge=0, description="Shortest note hold kept by session segmentation."
    )
    min_freq_hz: float = Field(40.0, gt=0, description="Lowest fundamental searched.")
    max_freq_hz: float = Field(1200.0, gt=0, description="Highest fundamental searched.")
    silence_threshold: float = Field(
        0.01, ge=0.0, description="RMS below which a frame is treated as silence."
    )
    record_interval_ms: int = Field(
        50, ge=0, description="Minimum spacing of frames stored in a session. 0 keeps all."
    )
    queue_size: int = Field(32, gt=0, description="Capacity of the capture frame queue.")

    @model_validator(mode="after")
    def _check_band(self) -> "PitchConfig":
        if self.min_freq_hz >= self.max_freq_hz:
            raise ValueError(
                f"min_freq_hz ({self.min_freq_hz}) must be less than max_freq_hz ({self.max_freq_hz})."
            )
        if self.max_freq_hz > self.sample_rate / 2:
            raise ValueError(
                f"max_freq_hz ({self.max_freq_hz}) must not exceed Nyquist ({self.sample_rate / 2})."
            )
        return self

    @property
    def frame_duration_ms(self) -> float:
        return 1000.0 * self.frame_size / self.sample_rate

    def updated(self, **changes: Any) -> "PitchConfig":
        """Return a re-validated copy with `changes` applied.

        Raises:
            InvalidConfiguration: If the resulting settings are out of bounds.
                `self` is never modified.
        """
        data: Dict[str, Any] = self.model_dump()
        data.update(changes)
        try:
            return PitchConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidConfiguration(str(e)) from e

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "PitchConfig":
        """Loads pitch configuration from a YAML file.

        The YAML file is expected to have a top-level 'pitch' key
        containing the parameters defined in this model.

        Raises:
            FileNotFoundError: If the YAML file does not exist.
            InvalidConfiguration: If parsing fails, the 'pitch' key is
                missing, or a value is out of bounds.
        """
        file_path = Path(yaml_path)
        if not file_path.exists():
            raise FileNotFoundError(f"YAML configuration file not found: {file_path}")

        with open(file_path) as f:
            try:
                full_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfiguration(f"Error parsing YAML file {file_path}: {e}") from e

        if not isinstance(full_config, dict) or "pitch" not in full_config:
            raise InvalidConfiguration(f"YAML file {file_path} must contain a 'pitch' key.")

        pitch_section = full_config["pitch"]
        if not isinstance(pitch_section, dict):
            raise InvalidConfiguration(f"'pitch' key in {file_path} must contain a dictionary.")

        try:
            return cls.model_validate(pitch_section)
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid pitch config in {file_path}: {e}") from e
