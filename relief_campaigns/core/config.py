"""Configuration models and YAML loader for relief campaigns."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from relief_campaigns.core.schemas import Platform, PlatformSettings


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/campaigns.db"


class ExperimentConfig(BaseModel):
    """Thresholds for A/B test completion and winner significance."""

    min_sample_size: int = Field(default=100, ge=1)
    min_impressions: int = Field(default=30, ge=0)
    significance_ratio: float = Field(default=1.1, ge=1.0)
    default_duration_hours: float = Field(default=24.0, gt=0)


class ResponseConfig(BaseModel):
    """Fallback text used when job details are missing from an auto-response."""

    required_skills: str = "Various skills needed"
    duration: str = "To be determined"
    compensation: str = "Competitive compensation"
    contact_info: str = "Contact information will be provided"
    job_title: str = "Disaster Relief Position"
    previous_experience: str = "your background"
    available_positions: str = "Multiple positions available"


class ContentConfig(BaseModel):
    """Content generation settings."""

    provider: str = "mock"
    model: str | None = None
    variations_per_platform: int = Field(default=3, ge=1, le=10)
    video_probability: float = Field(default=0.3, ge=0.0, le=1.0)
    max_hashtags: int = Field(default=10, ge=1)

    @field_validator("provider")
    @classmethod
    def provider_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "provider must not be empty"
            raise ValueError(msg)
        return v.strip().lower()


def _default_platforms() -> list[Platform]:
    return [
        Platform(
            id="facebook",
            name="facebook",
            settings=PlatformSettings(scheduled_times=["09:00", "14:00", "18:00"]),
        ),
        Platform(
            id="twitter",
            name="twitter",
            settings=PlatformSettings(scheduled_times=["08:00", "12:00", "16:00", "20:00"]),
        ),
        Platform(
            id="instagram",
            name="instagram",
            settings=PlatformSettings(scheduled_times=["10:00", "15:00", "19:00"]),
        ),
        Platform(
            id="linkedin",
            name="linkedin",
            settings=PlatformSettings(
                scheduled_times=["09:00", "13:00", "17:00"],
                hashtag_strategy="custom",
                custom_hashtags=["#Jobs", "#Professional", "#DisasterRelief"],
            ),
        ),
        Platform(
            id="tiktok",
            name="tiktok",
            settings=PlatformSettings(scheduled_times=["11:00", "16:00", "21:00"]),
        ),
    ]


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    experiments: ExperimentConfig = Field(default_factory=ExperimentConfig)
    responses: ResponseConfig = Field(default_factory=ResponseConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    platforms: list[Platform] = Field(default_factory=_default_platforms)

    @field_validator("platforms")
    @classmethod
    def unique_platform_ids(cls, v: list[Platform]) -> list[Platform]:
        ids = [p.id for p in v]
        if len(ids) != len(set(ids)):
            msg = "platform ids must be unique"
            raise ValueError(msg)
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
