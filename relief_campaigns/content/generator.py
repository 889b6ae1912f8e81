"""Content generation for campaign posts: captions, hashtags, media, variations."""

import logging
import random
import uuid
from datetime import datetime
from typing import Literal

from relief_campaigns.content.llm import LLMProvider, get_provider, parse_response
from relief_campaigns.content.llm.mock import build_caption, mentions_disaster
from relief_campaigns.core.config import ContentConfig
from relief_campaigns.core.schemas import ContentAnalysis, ContentVariation, GeneratedContent

logger = logging.getLogger(__name__)

IMAGE_URL = "https://picsum.photos/800/600?random={seed}"
VIDEO_URL = "https://sample-videos.com/zip/10/mp4/SampleVideo_360x240_1mb.mp4"

BASE_HASHTAGS = ("#Jobs", "#Hiring", "#Community", "#Help")
DISASTER_HASHTAGS = ("#DisasterRelief", "#Emergency", "#Recovery", "#Volunteer")
SKILL_HASHTAGS = ("#Construction", "#Medical", "#Logistics", "#Communication")

# Prompt keyword -> hashtags it adds, in insertion order.
_KEYWORD_HASHTAGS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("hurricane", ("#Hurricane", "#StormRelief")),
    ("earthquake", ("#Earthquake", "#SeismicRelief")),
    ("flood", ("#Flood", "#WaterDamage")),
    ("wildfire", ("#Wildfire", "#FireRelief")),
    ("medical", ("#Healthcare", "#Medical")),
    ("construction", ("#Construction", "#Rebuilding")),
    ("logistics", ("#Logistics", "#Supply")),
)

SUGGESTED_IMPROVEMENTS = (
    "Add more emotional appeal",
    "Include call-to-action",
    "Optimize hashtag selection",
)


class ContentGenerator:
    """Generates post content through a caption provider.

    ``rng`` drives media type and hashtag shuffling; pass a seeded
    ``random.Random`` for reproducible output.
    """

    def __init__(
        self,
        provider: LLMProvider | None = None,
        config: ContentConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or ContentConfig()
        self._provider = provider or get_provider(self._config.provider)
        self._rng = rng or random.Random()

    def generate_content(
        self,
        prompt: str,
        media_type: Literal["image", "video"] = "image",
        platform: str = "general",
    ) -> GeneratedContent:
        """Generate a single post for ``prompt``."""
        content_id = f"content_{uuid.uuid4().hex}"
        url = IMAGE_URL.format(seed=content_id) if media_type == "image" else VIDEO_URL
        caption, extra_hashtags = self._caption(prompt)

        hashtags = _dedupe([*self.generate_hashtags(prompt), *extra_hashtags])
        return GeneratedContent(
            id=content_id,
            type=media_type,
            url=url,
            caption=caption,
            hashtags=hashtags[: self._config.max_hashtags],
            platform=platform,
            generated_at=datetime.now(),
        )

    def generate_variations(
        self,
        prompt: str,
        platforms: list[str],
        count: int | None = None,
    ) -> list[GeneratedContent]:
        """Generate ``count`` rounds of posts, one per platform per round."""
        rounds = count if count is not None else self._config.variations_per_platform
        contents: list[GeneratedContent] = []
        for _ in range(rounds):
            for platform in platforms:
                media_type: Literal["image", "video"] = (
                    "video" if self._rng.random() < self._config.video_probability else "image"
                )
                contents.append(
                    self.generate_content(
                        f"{prompt} optimized for {platform}", media_type, platform=platform,
                    )
                )
        logger.info(
            "Generated %d content items (%d rounds x %d platforms)",
            len(contents), rounds, len(platforms),
        )
        return contents

    def build_variations(
        self,
        contents: list[GeneratedContent],
        platforms_per_round: int,
    ) -> list[ContentVariation]:
        """Group generated content into one variation per round.

        Variations are named "Variation A", "Variation B", ...
        """
        if platforms_per_round < 1:
            msg = "platforms_per_round must be at least 1"
            raise ValueError(msg)

        variations: list[ContentVariation] = []
        for index in range(0, len(contents), platforms_per_round):
            label = _variation_label(index // platforms_per_round)
            variations.append(
                ContentVariation(
                    id=f"variation_{uuid.uuid4().hex}",
                    name=f"Variation {label}",
                    content=contents[index : index + platforms_per_round],
                )
            )
        return variations

    def generate_caption(self, prompt: str) -> str:
        caption, _ = self._caption(prompt)
        return caption

    def generate_hashtags(self, prompt: str) -> list[str]:
        """Build hashtags from prompt keywords plus two random skill tags."""
        prompt_lower = prompt.lower()
        hashtags = list(BASE_HASHTAGS)

        for keyword, tags in _KEYWORD_HASHTAGS:
            if keyword in prompt_lower:
                hashtags.extend(tags)

        if mentions_disaster(prompt):
            hashtags.extend(DISASTER_HASHTAGS)

        hashtags.extend(self._rng.sample(SKILL_HASHTAGS, 2))
        return _dedupe(hashtags)[: self._config.max_hashtags]

    def analyze_content(self, content: GeneratedContent) -> ContentAnalysis:
        """Placeholder analysis with random scores."""
        return ContentAnalysis(
            sentiment_score=self._rng.random(),
            readability_score=self._rng.random(),
            engagement_prediction=self._rng.random() * 1000,
            suggested_improvements=list(SUGGESTED_IMPROVEMENTS),
        )

    def _caption(self, prompt: str) -> tuple[str, list[str]]:
        """Ask the provider for a caption; fall back to the template caption."""
        try:
            raw = self._provider.complete(prompt, model=self._config.model)
            draft = parse_response(raw)
        except Exception:
            logger.warning(
                "Caption generation via '%s' failed, using template caption",
                self._provider.provider_id,
                exc_info=True,
            )
            return build_caption(prompt), []
        return draft.caption, draft.hashtags


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _variation_label(index: int) -> str:
    label = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(ord("A") + remainder) + label
    return label
