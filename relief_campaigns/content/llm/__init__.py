"""Caption provider registry with lazy loading.

Usage:
    from relief_campaigns.content.llm import get_provider, parse_response

    provider = get_provider("mock")
    draft = parse_response(provider.complete(prompt))
"""

import importlib

from relief_campaigns.content.llm.base import CaptionDraft, LLMProvider, parse_response

__all__ = [
    "CaptionDraft",
    "LLMProvider",
    "available_providers",
    "get_provider",
    "parse_response",
]

# Lazy registry: maps provider name -> (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "mock": ("relief_campaigns.content.llm.mock", "MockProvider"),
    "anthropic": ("relief_campaigns.content.llm.anthropic", "AnthropicProvider"),
    "openai": ("relief_campaigns.content.llm.openai", "OpenAIProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate and return a caption provider by name.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
