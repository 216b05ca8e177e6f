"""Generation backend abstraction module."""

from replybot.providers.base import ConversationTurn, GenerationBackend, GenerationConfig
from replybot.providers.litellm_provider import LiteLLMProvider

__all__ = [
    "ConversationTurn",
    "GenerationBackend",
    "GenerationConfig",
    "LiteLLMProvider",
]
