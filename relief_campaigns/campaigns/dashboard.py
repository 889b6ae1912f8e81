"""Campaign list helpers: status toggling, summaries, and placeholder analytics."""

import random
from datetime import datetime, timedelta

from pydantic import BaseModel

from relief_campaigns.core.schemas import (
    Campaign,
    CampaignAnalytics,
    PlatformAnalytics,
    TimeSeriesData,
)


class CampaignSummary(BaseModel):
    """One dashboard row."""

    id: str
    name: str
    status: str
    urgency: str
    created: str
    scheduled: str | None = None
    platforms: list[str]
    reach: str
    engagement: str
    clicks: str
    conversion: str


def format_number(num: float) -> str:
    """Compact display: 1500 -> '1.5K', 2300000 -> '2.3M'."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(int(num)) if float(num).is_integer() else str(num)


def toggle_status(campaign: Campaign) -> Campaign:
    """Activate a draft or pause an active campaign; other statuses are unchanged."""
    if campaign.status == "draft":
        return campaign.model_copy(update={"status": "active"})
    if campaign.status == "active":
        return campaign.model_copy(update={"status": "draft"})
    return campaign


def summarize_campaign(campaign: Campaign) -> CampaignSummary:
    analytics = campaign.analytics
    return CampaignSummary(
        id=campaign.id,
        name=campaign.name,
        status=campaign.status,
        urgency=campaign.target_audience.urgency_level,
        created=campaign.created_at.strftime("%b %d, %Y"),
        scheduled=(
            campaign.scheduled_at.strftime("%b %d, %H:%M") if campaign.scheduled_at else None
        ),
        platforms=[p.name for p in campaign.platforms if p.enabled],
        reach=format_number(analytics.total_reach),
        engagement=format_number(analytics.total_engagement),
        clicks=format_number(analytics.total_clicks),
        conversion=f"{analytics.conversion_rate * 100:.1f}%",
    )


# Per platform: (spread, floor) for reach, engagement, clicks, shares, comments, saves.
_BREAKDOWN_RANGES: tuple[tuple[str, tuple[tuple[int, int], ...]], ...] = (
    ("Facebook", ((3000, 500), (300, 50), (150, 20), (50, 5), (100, 10), (25, 2))),
    ("Instagram", ((2500, 400), (250, 40), (120, 15), (30, 3), (80, 8), (40, 5))),
    ("Twitter", ((2000, 300), (200, 30), (100, 10), (60, 8), (70, 7), (15, 1))),
)


def generate_mock_analytics(
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> CampaignAnalytics:
    """Random analytics for demos until real platform reporting exists."""
    rng = rng or random.Random()
    now = now or datetime.now()

    def pick(spread: int, floor: int) -> int:
        return int(rng.random() * spread) + floor

    breakdown = []
    for platform, ranges in _BREAKDOWN_RANGES:
        reach, engagement, clicks, shares, comments, saves = (pick(*r) for r in ranges)
        breakdown.append(
            PlatformAnalytics(
                platform=platform,
                reach=reach,
                engagement=engagement,
                clicks=clicks,
                shares=shares,
                comments=comments,
                saves=saves,
            )
        )

    series = [
        TimeSeriesData(
            timestamp=now - timedelta(days=6 - i),
            reach=pick(1000, 200),
            engagement=pick(100, 20),
            clicks=pick(50, 5),
        )
        for i in range(7)
    ]

    return CampaignAnalytics(
        total_reach=pick(10000, 1000),
        total_engagement=pick(1000, 100),
        total_clicks=pick(500, 50),
        conversion_rate=rng.random() * 0.1 + 0.02,
        cost_per_engagement=rng.random() * 2 + 0.5,
        platform_breakdown=breakdown,
        time_series_data=series,
    )
