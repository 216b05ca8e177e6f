"""Wires the rule engine and the AI pipeline into one object."""

from dataclasses import dataclass
from typing import Any

from loguru import logger

from replybot.auto_reply import (
    ConversationContextStore,
    DispatchQueue,
    QueueConfig,
    RateLimiter,
    ReplyDispatcher,
    ResponseGenerator,
    RetryController,
)
from replybot.config.schema import Config
from replybot.providers.base import GenerationBackend, GenerationConfig
from replybot.providers.litellm_provider import LiteLLMProvider
from replybot.rules import AutoReplyEngine, RuleGenerator, RuleStore
from replybot.storage import JsonFileStore, KeyValueStore


@dataclass
class ReplyBot:
    """All long-lived components of a running bot."""
    config: Config
    backend: GenerationBackend
    rules: RuleStore
    engine: AutoReplyEngine
    queue: DispatchQueue
    generator: ResponseGenerator
    rule_generator: RuleGenerator
    dispatcher: ReplyDispatcher

    async def close(self) -> None:
        await self.queue.close()

    def get_stats(self) -> dict[str, Any]:
        stats = self.dispatcher.get_stats()
        stats["rate_limiter"] = self.queue.limiter.get_stats()
        stats["rules"] = len(self.rules.load_all())
        stats["contexts"] = len(self.generator.contexts)
        return stats


def generation_config(config: Config) -> GenerationConfig:
    """Translate the generation section into backend parameters."""
    gen = config.generation
    return GenerationConfig(
        max_output_tokens=gen.max_output_tokens,
        temperature=gen.temperature,
        top_p=gen.top_p,
        top_k=gen.top_k,
    )


def create_app(
    config: Config,
    backend: GenerationBackend | None = None,
    kv: KeyValueStore | None = None,
) -> ReplyBot:
    """
    Build a ReplyBot from configuration.

    Args:
        config: Loaded configuration.
        backend: Generation backend; a LiteLLMProvider is built from
            ``config.provider`` when omitted.
        kv: Key-value store; a JSON file at ``config.storage.path`` when omitted.

    Returns:
        The wired ReplyBot.
    """
    if backend is None:
        backend = LiteLLMProvider(
            api_key=config.provider.api_key or None,
            api_base=config.provider.api_base,
            default_model=config.provider.model,
        )
    if kv is None:
        kv = JsonFileStore(config.storage_path)

    rules = RuleStore(kv, key=config.storage.rules_key)
    engine = AutoReplyEngine(rules)

    dispatch = config.dispatch
    limiter = RateLimiter(min_interval=dispatch.min_interval_seconds)
    retry = RetryController(
        backend,
        config=generation_config(config),
        system_instruction=config.generation.system_instruction,
        max_attempts=dispatch.max_attempts,
        backoff_base=dispatch.backoff_base_seconds,
    )
    queue = DispatchQueue(limiter, retry, QueueConfig(max_queue_size=dispatch.max_queue_size))

    generator = ResponseGenerator(
        queue,
        contexts=ConversationContextStore(keep_turns=config.context.keep_turns),
    )

    logger.debug(
        f"replybot ready: min interval {dispatch.min_interval_seconds}s, "
        f"{dispatch.max_attempts} attempts"
    )

    return ReplyBot(
        config=config,
        backend=backend,
        rules=rules,
        engine=engine,
        queue=queue,
        generator=generator,
        rule_generator=RuleGenerator(rules, queue),
        dispatcher=ReplyDispatcher(engine, generator),
    )
