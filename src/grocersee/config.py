"""Configuration management for Grocersee."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from grocersee.errors import ConfigurationError
from grocersee.labels import DEFAULT_CATEGORIES, DEFAULT_LABELS, OTHER_CATEGORY


class DeviceConfig(BaseModel):
    """Device configuration."""

    name: str = "grocersee"
    mode: Literal["production", "development"] = "development"
    log_level: str = "INFO"


class FrameConfig(BaseModel):
    """Frame geometry used by feature building and salience scoring."""

    width: int = Field(default=640, gt=0)
    height: int = Field(default=480, gt=0)


class ModelConfig(BaseModel):
    """Detector model configuration."""

    labels: list[str] = Field(default_factory=lambda: list(DEFAULT_LABELS))
    input_size: tuple[int, int] = (640, 640)
    weights_path: str | None = None
    box_order: Literal["xyxy", "yxyx"] = "xyxy"

    @property
    def num_classes(self) -> int:
        return len(self.labels)


class SuppressionProfile(BaseModel):
    """Non-max suppression parameters."""

    max_output: int = Field(default=100, gt=0)
    iou_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    score_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


def _default_profiles() -> dict[str, SuppressionProfile]:
    return {
        "general": SuppressionProfile(max_output=500, iou_threshold=0.3, score_threshold=0.2),
        "strict": SuppressionProfile(max_output=100, iou_threshold=0.3, score_threshold=0.5),
    }


class SuppressionConfig(BaseModel):
    """Named NMS profiles and the one in use."""

    profiles: dict[str, SuppressionProfile] = Field(default_factory=_default_profiles)
    active_profile: str = "strict"

    @model_validator(mode="after")
    def _check_active_profile(self) -> SuppressionConfig:
        if self.active_profile not in self.profiles:
            raise ValueError(
                f"Unknown suppression profile: {self.active_profile}. "
                f"Choose from: {list(self.profiles)}"
            )
        return self

    def get_profile(self, name: str | None = None) -> SuppressionProfile:
        """Get a profile by name (the active one if name is None)."""
        name = name or self.active_profile
        try:
            return self.profiles[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown suppression profile: {name}. Choose from: {list(self.profiles)}"
            ) from None


class ClusteringConfig(BaseModel):
    """K-means clustering configuration."""

    max_k: int = Field(default=5, ge=1)
    max_iterations: int = Field(default=100, ge=1)
    elbow_tolerance: float = Field(default=0.5, gt=0.0)
    fixed_k: int | None = None
    seed: int | None = None

    # Feature emphasis weights
    position_weight: float = 1.5
    size_weight: float = 2.0
    score_weight: float = 1.0

    @model_validator(mode="after")
    def _check_fixed_k(self) -> ClusteringConfig:
        if self.fixed_k is not None and not 1 <= self.fixed_k <= self.max_k:
            raise ValueError(f"fixed_k must be within [1, {self.max_k}], got {self.fixed_k}")
        return self


class FocusConfig(BaseModel):
    """Focus analysis thresholds."""

    focus_threshold: float = Field(default=0.3, ge=0.0)
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class MessageConfig(BaseModel):
    """Spoken message templates (Indonesian)."""

    locale: str = "id-ID"
    no_detection: str = "Silakan arahkan kamera ke bahan makanan"
    single_focus: str = "Terlihat {item} di depan Anda"
    category_summary: str = "Terlihat beberapa jenis bahan makanan: {categories}"
    category_separator: str = ", "
    # Checked in order against every label in the frame
    priority_phrases: dict[str, str] = Field(
        default_factory=lambda: {
            "tomat": "Terlihat tomat di depan Anda",
            "kubis": "Terlihat kubis di depan Anda",
            "wortel": "Terlihat wortel di depan Anda",
            "kentang": "Terlihat kentang di depan Anda",
        }
    )


class RunnerConfig(BaseModel):
    """Frame runner configuration."""

    fps: int = Field(default=10, gt=0)


class Config(BaseSettings):
    """Main configuration for Grocersee."""

    model_config = SettingsConfigDict(
        env_prefix="GROCERSEE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    device: DeviceConfig = Field(default_factory=DeviceConfig)
    frame: FrameConfig = Field(default_factory=FrameConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    suppression: SuppressionConfig = Field(default_factory=SuppressionConfig)
    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    focus: FocusConfig = Field(default_factory=FocusConfig)
    categories: dict[str, list[str]] = Field(
        default_factory=lambda: {name: list(items) for name, items in DEFAULT_CATEGORIES.items()}
    )
    other_category: str = OTHER_CATEGORY
    messages: MessageConfig = Field(default_factory=MessageConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)

    # Mock detector instead of the TFLite model
    mock_mode: bool = False

    @classmethod
    def from_yaml(cls, path: Path | str) -> Config:
        """Read a YAML config file; a missing file gives the defaults."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Write the full configuration as YAML, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


def config_search_paths() -> list[Path]:
    """Standard config file locations, most general first."""
    return [
        Path("/etc/grocersee/config.yaml"),
        Path.home() / ".config" / "grocersee" / "config.yaml",
        Path("config.yaml"),
        Path("configs/grocersee.yaml"),
    ]


TRUTHY = ("1", "true", "yes")


def load_config(
    config_path: Path | str | None = None,
    env_override: bool = True,
) -> Config:
    """Load configuration from the first YAML file found, then the environment.

    Args:
        config_path: Checked before the standard locations.
        env_override: Apply ``GROCERSEE_SUPPRESSION_PROFILE`` and
            ``GROCERSEE_MOCK_MODE`` on top of the file.

    Raises:
        ConfigurationError: If the environment names an unknown profile.
    """
    candidates = [Path(config_path)] if config_path else []
    candidates.extend(config_search_paths())

    found = next((path for path in candidates if path.exists()), None)
    config = Config.from_yaml(found) if found else Config()

    if not env_override:
        return config

    profile = os.environ.get("GROCERSEE_SUPPRESSION_PROFILE")
    if profile:
        config.suppression.get_profile(profile)
        config.suppression.active_profile = profile

    if os.environ.get("GROCERSEE_MOCK_MODE", "").lower() in TRUTHY:
        config.mock_mode = True

    return config
