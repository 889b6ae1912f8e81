"""Core data models for relief recruitment campaigns.

Frozen models are submitted records (profiles, generated content). Mutable
models are owned by a single service (experiments, campaigns) and only
changed through that service's operations.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PlatformName = Literal["facebook", "twitter", "instagram", "linkedin", "tiktok"]
CampaignStatus = Literal["draft", "active", "scheduled", "completed", "failed"]
MediaType = Literal["image", "video", "mixed"]
UrgencyLevel = Literal["low", "medium", "high", "critical"]
DisasterKind = Literal["hurricane", "earthquake", "flood", "wildfire", "tornado", "other"]
WinnerCriteria = Literal["engagement", "reach", "clicks"]
ExperimentStatus = Literal["running", "completed", "stopped"]
MetricName = Literal["impressions", "engagement", "clicks", "shares"]
TriggerAction = Literal["send_auto_response", "flag_for_review", "schedule_interview"]
ResponseStatus = Literal["pending", "sent", "replied"]

METRIC_NAMES: tuple[str, ...] = ("impressions", "engagement", "clicks", "shares")


# ---------------------------------------------------------------------------
# Platforms
# ---------------------------------------------------------------------------


class PlatformCredentials(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None


class PlatformSettings(BaseModel):
    auto_post: bool = False
    scheduled_times: list[str] = Field(default_factory=lambda: ["09:00", "14:00", "18:00"])
    hashtag_strategy: Literal["auto", "custom"] = "auto"
    custom_hashtags: list[str] | None = None


class Platform(BaseModel):
    """A social network a campaign can post to."""

    id: str
    name: PlatformName
    enabled: bool = False
    credentials: PlatformCredentials | None = None
    settings: PlatformSettings = Field(default_factory=PlatformSettings)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class GeneratedContent(BaseModel):
    """One piece of generated media with its caption and hashtags."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["image", "video"]
    url: str
    caption: str
    hashtags: list[str] = Field(default_factory=list)
    platform: str = "general"
    generated_at: datetime = Field(default_factory=datetime.now)


class VariationPerformance(BaseModel):
    """Accumulated counters for one experiment variant."""

    impressions: int = 0
    engagement: int = 0
    clicks: int = 0
    shares: int = 0
    conversion_rate: float = 0.0


class ContentVariation(BaseModel):
    """A named bundle of content compared in an A/B test."""

    id: str
    name: str
    content: list[GeneratedContent] = Field(default_factory=list)
    performance: VariationPerformance | None = None


class ABTestConfig(BaseModel):
    enabled: bool = True
    test_duration: float = Field(default=24.0, gt=0)  # hours
    winner_criteria: WinnerCriteria = "engagement"
    variations: list[str] = Field(default_factory=list)


class ContentGeneration(BaseModel):
    prompt: str
    media_type: MediaType = "image"
    generated_content: list[GeneratedContent] = Field(default_factory=list)
    variations: list[ContentVariation] = Field(default_factory=list)
    ab_test_config: ABTestConfig | None = None


class ContentAnalysis(BaseModel):
    sentiment_score: float
    readability_score: float
    engagement_prediction: float
    suggested_improvements: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class PlatformAnalytics(BaseModel):
    platform: str
    reach: int = 0
    engagement: int = 0
    clicks: int = 0
    shares: int = 0
    comments: int = 0
    saves: int = 0


class TimeSeriesData(BaseModel):
    timestamp: datetime
    reach: int = 0
    engagement: int = 0
    clicks: int = 0


class CampaignAnalytics(BaseModel):
    total_reach: int = 0
    total_engagement: int = 0
    total_clicks: int = 0
    conversion_rate: float = 0.0
    cost_per_engagement: float = 0.0
    platform_breakdown: list[PlatformAnalytics] = Field(default_factory=list)
    time_series_data: list[TimeSeriesData] = Field(default_factory=list)
    top_performing_content: list[GeneratedContent] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


class DisasterType(BaseModel):
    type: DisasterKind
    description: str
    affected_areas: list[str] = Field(default_factory=list)
    estimated_duration: int = 30  # days


class Demographics(BaseModel):
    age_range: tuple[int, int] = (18, 65)
    interests: list[str] = Field(default_factory=list)
    occupation: list[str] | None = None


class TargetAudience(BaseModel):
    location: str
    demographics: Demographics = Field(default_factory=Demographics)
    disaster_type: DisasterType
    urgency_level: UrgencyLevel = "medium"


class Campaign(BaseModel):
    """A recruitment campaign across one or more platforms."""

    id: str
    name: str
    description: str
    status: CampaignStatus = "draft"
    created_at: datetime = Field(default_factory=datetime.now)
    scheduled_at: datetime | None = None
    platforms: list[Platform] = Field(default_factory=list)
    content: ContentGeneration
    analytics: CampaignAnalytics = Field(default_factory=CampaignAnalytics)
    target_audience: TargetAudience


# ---------------------------------------------------------------------------
# Jobs and candidates
# ---------------------------------------------------------------------------


class Compensation(BaseModel):
    type: Literal["hourly", "daily", "project"] = "hourly"
    amount: float | None = None
    currency: str = "USD"


class ContactInfo(BaseModel):
    name: str
    email: str
    phone: str | None = None
    organization: str | None = None


class JobCategory(BaseModel):
    primary: str
    secondary: str | None = None
    tags: list[str] = Field(default_factory=list)


class JobPosting(BaseModel):
    """Job details used to fill auto-response placeholders.

    Every field is optional so partial job details still render a message.
    """

    id: str = ""
    title: str = ""
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    location: str = ""
    urgency: UrgencyLevel = "medium"
    estimated_duration: str = ""
    compensation: Compensation | None = None
    contact_info: ContactInfo | None = None
    skills: list[str] = Field(default_factory=list)
    category: JobCategory | None = None


class Availability(BaseModel):
    model_config = ConfigDict(frozen=True)

    immediate: bool = False
    start_date: datetime | None = None
    duration: str | None = None


class ResponseProfile(BaseModel):
    """A candidate who responded to a campaign.

    Frozen: scoring and response generation never modify the profile.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str = ""
    phone: str | None = None
    location: str = ""
    skills: list[str] = Field(default_factory=list)
    availability: Availability = Field(default_factory=Availability)
    verified: bool = False
    rating: float | None = None
    previous_experience: list[str] = Field(default_factory=list)


class ProfileScores(BaseModel):
    """Heuristic fit scores for a candidate profile, each in 0-1."""

    model_config = ConfigDict(frozen=True)

    skill_score: float
    availability_score: float
    location_score: float
    overall_score: float


class ResponseTrigger(BaseModel):
    condition: str
    value: bool | float | str
    action: TriggerAction = "send_auto_response"


class ResponseTemplate(BaseModel):
    id: str
    name: str
    subject: str
    body: str
    variables: list[str] = Field(default_factory=list)
    triggers: list[ResponseTrigger] = Field(default_factory=list)


class AutoResponse(BaseModel):
    """A personalized message generated for one candidate profile."""

    id: str
    campaign_id: str
    respondent_profile: ResponseProfile
    subject: str = ""
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    status: ResponseStatus = "pending"
    template: ResponseTemplate


# ---------------------------------------------------------------------------
# Experiments
# ---------------------------------------------------------------------------


class Experiment(BaseModel):
    """A running or finished A/B test over content variations.

    ``results`` keeps variant order; winner tie-breaks and insights rely on it.
    """

    id: str
    campaign_id: str
    variations: list[ContentVariation]
    config: ABTestConfig
    start_time: datetime
    end_time: datetime
    status: ExperimentStatus = "running"
    current_winner: ContentVariation | None = None
    results: dict[str, VariationPerformance] = Field(default_factory=dict)


class VariationResult(BaseModel):
    variation: ContentVariation
    performance: VariationPerformance
    is_winner: bool = False


class ABTestResults(BaseModel):
    """Point-in-time snapshot of an experiment."""

    test_id: str
    campaign_id: str
    status: ExperimentStatus
    start_time: datetime
    end_time: datetime
    config: ABTestConfig
    variation_results: list[VariationResult] = Field(default_factory=list)
    winner: ContentVariation | None = None
    insights: list[str] = Field(default_factory=list)
