"""Offline caption provider used for demos and tests.

Captions come from two fixed templates: an urgent call when the prompt
mentions a disaster, a recovery call otherwise.
"""

import json

from relief_campaigns.content.llm.base import LLMProvider

DISASTER_KEYWORDS = ("hurricane", "earthquake", "flood", "wildfire", "tornado")


def mentions_disaster(prompt: str) -> bool:
    prompt_lower = prompt.lower()
    return any(keyword in prompt_lower for keyword in DISASTER_KEYWORDS)


def build_caption(prompt: str) -> str:
    if mentions_disaster(prompt):
        return (
            f"URGENT: Post-disaster support needed! {prompt[:100]}... "
            "We're actively hiring for immediate disaster relief efforts. "
            "Apply now to make a difference in your community. "
            "#DisasterRelief #Jobs #Community #Help"
        )
    return (
        "Join our mission to help communities rebuild and recover. "
        f"{prompt[:120]}... "
        "Apply today and be part of the solution. "
        "#Jobs #Community #Recovery #Hiring"
    )


class MockProvider(LLMProvider):
    """Deterministic provider that needs no network or API key."""

    @property
    def provider_id(self) -> str:
        return "mock"

    @property
    def default_model(self) -> str:
        return "template"

    @property
    def env_var(self) -> None:
        return None

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        return json.dumps({"caption": build_caption(prompt), "hashtags": []})
