"""Campaign builder: validates the campaign form and assembles a Campaign."""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from relief_campaigns.core.schemas import (
    Campaign,
    CampaignAnalytics,
    ContentGeneration,
    Demographics,
    DisasterKind,
    DisasterType,
    MediaType,
    Platform,
    PlatformSettings,
    TargetAudience,
    UrgencyLevel,
)

logger = logging.getLogger(__name__)

# Platform id -> display order in the builder.
PLATFORM_OPTIONS: tuple[str, ...] = ("facebook", "instagram", "twitter", "linkedin", "tiktok")

_DURATION_BY_URGENCY: dict[str, int] = {
    "critical": 7,
    "high": 14,
    "medium": 30,
    "low": 60,
}

DEFAULT_INTERESTS = ["community service", "disaster relief", "volunteering"]
DEFAULT_OCCUPATIONS = ["construction", "healthcare", "logistics", "administration"]


class CampaignForm(BaseModel):
    """Fields collected by the campaign builder form."""

    name: str
    description: str
    prompt: str
    media_type: MediaType = "image"
    disaster_type: DisasterKind = "hurricane"
    disaster_description: str
    location: str
    urgency_level: UrgencyLevel = "medium"
    scheduled_at: datetime | None = None
    platforms: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            msg = "Campaign name is required"
            raise ValueError(msg)
        return v.strip()

    @field_validator("description")
    @classmethod
    def description_min_length(cls, v: str) -> str:
        if len(v.strip()) < 10:
            msg = "Description must be at least 10 characters"
            raise ValueError(msg)
        return v.strip()

    @field_validator("prompt")
    @classmethod
    def prompt_min_length(cls, v: str) -> str:
        if len(v.strip()) < 10:
            msg = "Content prompt is required"
            raise ValueError(msg)
        return v.strip()

    @field_validator("disaster_description")
    @classmethod
    def disaster_description_min_length(cls, v: str) -> str:
        if len(v.strip()) < 5:
            msg = "Disaster description is required"
            raise ValueError(msg)
        return v.strip()

    @field_validator("location")
    @classmethod
    def location_required(cls, v: str) -> str:
        if not v.strip():
            msg = "Location is required"
            raise ValueError(msg)
        return v.strip()

    @field_validator("platforms")
    @classmethod
    def at_least_one_platform(cls, v: list[str]) -> list[str]:
        cleaned = [p.lower().strip() for p in v if p.strip()]
        if not cleaned:
            msg = "Select at least one platform"
            raise ValueError(msg)
        unknown = sorted(set(cleaned) - set(PLATFORM_OPTIONS))
        if unknown:
            msg = f"Unknown platforms: {unknown}. Available: {list(PLATFORM_OPTIONS)}"
            raise ValueError(msg)
        return cleaned

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CampaignForm":
        """Load form values from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Campaign form not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def from_campaign(cls, campaign: Campaign) -> "CampaignForm":
        """Prefill the form from an existing campaign for editing."""
        audience = campaign.target_audience
        return cls(
            name=campaign.name,
            description=campaign.description,
            prompt=campaign.content.prompt,
            media_type=campaign.content.media_type,
            disaster_type=audience.disaster_type.type,
            disaster_description=audience.disaster_type.description,
            location=audience.location,
            urgency_level=audience.urgency_level,
            scheduled_at=campaign.scheduled_at,
            platforms=[p.id for p in campaign.platforms if p.enabled],
        )


def estimated_duration_days(urgency: UrgencyLevel) -> int:
    """Expected relief operation length in days for an urgency level."""
    return _DURATION_BY_URGENCY[urgency]


def build_campaign(
    form: CampaignForm,
    existing: Campaign | None = None,
    now: datetime | None = None,
) -> Campaign:
    """Assemble a draft Campaign from a validated form.

    When editing, ``existing`` keeps its id and creation time.
    """
    disaster = DisasterType(
        type=form.disaster_type,
        description=form.disaster_description,
        affected_areas=[form.location],
        estimated_duration=estimated_duration_days(form.urgency_level),
    )
    audience = TargetAudience(
        location=form.location,
        demographics=Demographics(
            age_range=(18, 65),
            interests=list(DEFAULT_INTERESTS),
            occupation=list(DEFAULT_OCCUPATIONS),
        ),
        disaster_type=disaster,
        urgency_level=form.urgency_level,
    )
    platforms = [
        Platform(id=pid, name=pid, enabled=True, settings=PlatformSettings())  # type: ignore[arg-type]
        for pid in PLATFORM_OPTIONS
        if pid in form.platforms
    ]

    campaign = Campaign(
        id=existing.id if existing else f"campaign_{uuid.uuid4()}",
        name=form.name,
        description=form.description,
        status="draft",
        created_at=existing.created_at if existing else (now or datetime.now()),
        scheduled_at=form.scheduled_at,
        platforms=platforms,
        content=ContentGeneration(prompt=form.prompt, media_type=form.media_type),
        analytics=CampaignAnalytics(),
        target_audience=audience,
    )
    logger.info(
        "Built campaign %s '%s' (%s, %d platforms)",
        campaign.id, campaign.name, form.urgency_level, len(platforms),
    )
    return campaign
