"""
Retry with backoff and a stateless fallback.

Attempt 1 sends the message with its conversation history. Once that has
failed, later attempts drop the history and ask for a direct answer instead,
trading context for a better chance of getting any reply at all.
"""

import asyncio
import re
from typing import Awaitable, Callable, Protocol

from loguru import logger

from replybot.errors import AIError, BackendError, ExhaustedRetriesError
from replybot.prompts import DEFAULT_SYSTEM_INSTRUCTION, DIRECT_ANSWER_DIRECTIVE
from replybot.providers.base import ConversationTurn, GenerationBackend, GenerationConfig
from replybot.result import Err, Ok, Result

# Leading self-introduction sentences removed from replies
SELF_INTRO_PATTERNS = [
    re.compile(r"^\s*(?:hi|hello|hey)?[\s,!.]*i(?:'m| am) (?:an? |your )(?:[\w-]+ ){0,3}(?:assistant|bot|ai|language model)\b[^.!?\n]*[.!?]+\s*", re.IGNORECASE),
    re.compile(r"^\s*as an? (?:ai|artificial intelligence|language model|ai language model|assistant)\b[^,.!?\n]*[,.!?]+\s*", re.IGNORECASE),
]


def clean_response(text: str) -> str:
    """Strip leading self-introductions, then capitalize the first letter."""
    cleaned = text.strip()
    changed = True
    while changed and cleaned:
        changed = False
        for pattern in SELF_INTRO_PATTERNS:
            stripped = pattern.sub("", cleaned, count=1)
            if stripped != cleaned:
                cleaned = stripped.strip()
                changed = True
    if cleaned:
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


class GenerationStrategy(Protocol):
    """How one attempt talks to the backend."""
    name: str

    async def run(
        self,
        backend: GenerationBackend,
        message: str,
        context: list[ConversationTurn],
    ) -> str:
        ...


class ConversationalStrategy:
    """Full mode: history, generation parameters and system instruction."""
    name = "conversational"

    def __init__(
        self,
        config: GenerationConfig | None = None,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
    ):
        self.config = config or GenerationConfig()
        self.system_instruction = system_instruction

    async def run(self, backend, message, context):
        return await backend.generate(
            message,
            list(context),
            self.config,
            system_instruction=self.system_instruction,
        )


class StatelessStrategy:
    """Fallback mode: no history, explicit direct-answer directive."""
    name = "stateless"

    def __init__(
        self,
        config: GenerationConfig | None = None,
        directive: str = DIRECT_ANSWER_DIRECTIVE,
    ):
        self.config = config or GenerationConfig()
        self.directive = directive

    async def run(self, backend, message, context):
        prompt = f"{self.directive}\n\n{message}"
        return await backend.generate(prompt, [], self.config)


StrategySelector = Callable[[int], GenerationStrategy]


def default_selector(
    conversational: GenerationStrategy,
    stateless: GenerationStrategy,
) -> StrategySelector:
    """Attempt 1 is conversational, every later attempt is stateless."""
    def select(attempt: int) -> GenerationStrategy:
        return conversational if attempt == 1 else stateless
    return select


class RetryController:
    """
    Calls the backend up to ``max_attempts`` times.

    After failed attempt ``n`` (counted from 1) it waits
    ``backoff_base * 2**n`` seconds before the next one.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        config: GenerationConfig | None = None,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        selector: StrategySelector | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.backend = backend
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self._sleep = sleep
        config = config or GenerationConfig()
        self._select = selector or default_selector(
            ConversationalStrategy(config, system_instruction),
            StatelessStrategy(config),
        )

    def backoff_delay(self, attempt: int) -> float:
        return self.backoff_base * (2 ** attempt)

    async def call_with_retry(
        self,
        message: str,
        context: list[ConversationTurn],
    ) -> Result[str, ExhaustedRetriesError]:
        """
        Get a cleaned reply for ``message``.

        Returns:
            Ok(reply) or Err(ExhaustedRetriesError) carrying the last error.
        """
        last_error: Exception = BackendError("No attempts made")

        for attempt in range(1, self.max_attempts + 1):
            strategy = self._select(attempt)
            try:
                raw = await strategy.run(self.backend, message, context)
                raw = (raw or "").strip()
                if not raw:
                    raise BackendError("Backend returned an empty reply")
                # A reply that is nothing but an introduction is still a reply
                reply = clean_response(raw) or raw
                if attempt > 1:
                    logger.info(f"AI request succeeded on attempt {attempt} ({strategy.name})")
                return Ok(reply)

            except AIError as e:
                last_error = e
            except Exception as e:
                # Backends are expected to wrap their errors; treat strays the same way
                last_error = BackendError(str(e))

            logger.warning(
                f"AI request failed (attempt {attempt}/{self.max_attempts}, "
                f"{strategy.name}): {last_error}"
            )

            if attempt < self.max_attempts:
                await self._sleep(self.backoff_delay(attempt))

        logger.error(f"AI request gave up after {self.max_attempts} attempts: {last_error}")
        return Err(ExhaustedRetriesError(last_error, self.max_attempts))
