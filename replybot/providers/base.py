"""Generation backend contract."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal


@dataclass
class GenerationConfig:
    """Sampling parameters sent with every generation request."""
    max_output_tokens: int = 1000
    temperature: float = 0.7
    top_p: float = 0.8
    top_k: int = 40


@dataclass(frozen=True)
class ConversationTurn:
    """One entry of a conversation history."""
    role: Literal["user", "model"]
    text: str


class GenerationBackend(ABC):
    """
    Abstract generative text backend.

    Implementations raise ``RateLimitedError`` when the backend reports quota
    exhaustion and ``BackendError`` for any other failure.
    """

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        history: list[ConversationTurn],
        config: GenerationConfig,
        system_instruction: str | None = None,
    ) -> str:
        """
        Generate a reply.

        Args:
            prompt: The new user message (or a standalone prompt).
            history: Earlier turns, oldest first. Empty for stateless calls.
            config: Sampling parameters.
            system_instruction: Optional steering instruction.

        Returns:
            Raw generated text.
        """
        pass
