"""Abstract base class for caption providers and shared parsing."""

import json
import re
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

SYSTEM_PROMPT = (
    "You write social media recruitment posts for disaster relief jobs.\n\n"
    "Given a campaign prompt, write one short post that invites people to apply.\n"
    "Return ONLY a JSON object (no markdown, no explanation) with these fields:\n"
    "- caption (string): the post text, at most 400 characters\n"
    "- hashtags (list[str]): 0-5 hashtags, each starting with '#'\n\n"
    "Keep the tone urgent but respectful. Never invent pay rates or locations "
    "that are not in the prompt."
)


class CaptionDraft(BaseModel):
    """Caption text and optional hashtags returned by a provider."""

    caption: str
    hashtags: list[str] = Field(default_factory=list)


def parse_response(raw_text: str) -> CaptionDraft:
    """Parse a provider response into a CaptionDraft.

    Handles markdown-wrapped JSON (```json ... ```) and plain JSON.
    """
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict) or not str(data.get("caption", "")).strip():
        msg = "LLM response missing 'caption' field"
        raise ValueError(msg)

    return CaptionDraft.model_validate(data)


class LLMProvider(ABC):
    """Base class that every caption provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a campaign prompt to the provider and return raw response text.

        Args:
            prompt: Campaign content prompt.
            model: Override the provider's default model. None uses default.
            system: Override the system prompt. None falls back to SYSTEM_PROMPT.

        Returns:
            Raw text response (expected to be JSON).
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""
