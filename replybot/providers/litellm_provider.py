"""LiteLLM generation backend for multi-provider support."""

import os
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from replybot.errors import BackendError, RateLimitedError
from replybot.providers.base import ConversationTurn, GenerationBackend, GenerationConfig


class LiteLLMProvider(GenerationBackend):
    """
    Generation backend using LiteLLM.

    Supports Gemini, OpenRouter, Anthropic, OpenAI, DeepSeek, Ollama and other
    providers through a unified interface.

    Features:
    - Automatic provider detection from model name
    - Rate-limit errors mapped to ``RateLimitedError``
    - Usage tracking
    """

    # Provider configurations
    PROVIDER_CONFIGS = {
        "gemini": {
            "env_key": "GEMINI_API_KEY",
            "prefix": "gemini/",
        },
        "openrouter": {
            "env_key": "OPENROUTER_API_KEY",
            "prefix": "openrouter/",
            "api_base": "https://openrouter.ai/api/v1",
        },
        "anthropic": {
            "env_key": "ANTHROPIC_API_KEY",
            "prefix": "",
        },
        "openai": {
            "env_key": "OPENAI_API_KEY",
            "prefix": "",
        },
        "deepseek": {
            "env_key": "DEEPSEEK_API_KEY",
            "prefix": "deepseek/",
            "api_base": "https://api.deepseek.com/v1",
        },
        "ollama": {
            "env_key": "",
            "prefix": "ollama/",
            "api_base": "http://localhost:11434",
        },
    }

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "gemini/gemini-pro",
    ):
        self.api_key = api_key
        self.api_base = api_base
        self.default_model = default_model

        # Usage tracking
        self._total_tokens = 0
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self._request_count = 0
        self._rate_limited_count = 0

        # Detect provider type
        self._detected_provider = self._detect_provider(default_model, api_key, api_base)

        # Configure environment
        self._configure_environment(api_key)

        # Disable LiteLLM logging noise; top_k is not accepted by every provider
        litellm.suppress_debug_info = True
        litellm.drop_params = True

    def _detect_provider(
        self,
        model: str,
        api_key: str | None,
        api_base: str | None,
    ) -> str:
        """Detect provider from model name, key, or base URL."""
        model_lower = model.lower()

        # Check by API key prefix
        if api_key:
            if api_key.startswith("sk-or-"):
                return "openrouter"
            if api_key.startswith("sk-ant-"):
                return "anthropic"

        # Check by API base
        if api_base:
            if "openrouter" in api_base:
                return "openrouter"
            if "deepseek" in api_base:
                return "deepseek"
            if "11434" in api_base:
                return "ollama"

        # Check by model name prefix
        if model_lower.startswith("gemini/") or "gemini" in model_lower:
            return "gemini"
        if model_lower.startswith("deepseek/"):
            return "deepseek"
        if model_lower.startswith("ollama/"):
            return "ollama"
        if "claude" in model_lower or model_lower.startswith("anthropic/"):
            return "anthropic"
        if "gpt" in model_lower or model_lower.startswith("openai/"):
            return "openai"

        # Default to OpenRouter for unknown
        if api_key:
            return "openrouter"

        return "gemini"

    def _configure_environment(self, api_key: str | None) -> None:
        """Configure environment variables for LiteLLM."""
        if not api_key:
            return

        provider_config = self.PROVIDER_CONFIGS.get(self._detected_provider, {})
        env_key = provider_config.get("env_key", "OPENAI_API_KEY")

        if env_key:
            os.environ.setdefault(env_key, api_key)

    def _format_model_name(self, model: str) -> str:
        """Format model name for LiteLLM based on provider."""
        config = self.PROVIDER_CONFIGS.get(self._detected_provider, {})

        # Apply prefix if needed
        prefix = config.get("prefix", "")
        if prefix and not model.startswith(prefix) and "/" not in model:
            model = f"{prefix}{model}"

        # Special handling for OpenRouter
        if self._detected_provider == "openrouter" and not model.startswith("openrouter/"):
            model = f"openrouter/{model}"

        return model

    def _get_api_base(self) -> str | None:
        if self.api_base:
            return self.api_base
        return self.PROVIDER_CONFIGS.get(self._detected_provider, {}).get("api_base")

    @staticmethod
    def build_messages(
        prompt: str,
        history: list[ConversationTurn],
        system_instruction: str | None = None,
    ) -> list[dict[str, str]]:
        """Convert history + prompt into chat-completion messages."""
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        for turn in history:
            role = "assistant" if turn.role == "model" else "user"
            messages.append({"role": role, "content": turn.text})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(
        self,
        prompt: str,
        history: list[ConversationTurn],
        config: GenerationConfig,
        system_instruction: str | None = None,
    ) -> str:
        """Send one chat completion request via LiteLLM."""
        kwargs: dict[str, Any] = {
            "model": self._format_model_name(self.default_model),
            "messages": self.build_messages(prompt, history, system_instruction),
            "max_tokens": config.max_output_tokens,
            "temperature": config.temperature,
            "top_p": config.top_p,
            "top_k": config.top_k,
        }

        api_base = self._get_api_base()
        if api_base:
            kwargs["api_base"] = api_base
        if self.api_key:
            kwargs["api_key"] = self.api_key

        try:
            response = await acompletion(**kwargs)
        except litellm.RateLimitError as e:
            self._rate_limited_count += 1
            raise RateLimitedError(str(e)) from e
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            if status_code == 429:
                self._rate_limited_count += 1
                raise RateLimitedError(str(e)) from e
            raise BackendError(str(e), status_code=status_code) from e

        self._request_count += 1
        self._track_usage(response)

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} chars with {kwargs['model']}")
        return content

    def _track_usage(self, response: Any) -> None:
        usage = getattr(response, "usage", None)
        if not usage:
            return
        self._total_tokens += getattr(usage, "total_tokens", 0) or 0
        self._prompt_tokens += getattr(usage, "prompt_tokens", 0) or 0
        self._completion_tokens += getattr(usage, "completion_tokens", 0) or 0

    def get_usage_stats(self) -> dict[str, Any]:
        """Get usage statistics."""
        return {
            "provider": self._detected_provider,
            "model": self.default_model,
            "total_tokens": self._total_tokens,
            "prompt_tokens": self._prompt_tokens,
            "completion_tokens": self._completion_tokens,
            "request_count": self._request_count,
            "rate_limited_count": self._rate_limited_count,
        }
