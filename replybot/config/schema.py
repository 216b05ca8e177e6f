"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from replybot.prompts import DEFAULT_SYSTEM_INSTRUCTION


class ProviderConfig(BaseModel):
    """AI backend configuration."""
    api_key: str = ""
    api_base: str | None = None
    model: str = "gemini/gemini-pro"


class GenerationSettings(BaseModel):
    """Sampling parameters sent with every generation request."""
    max_output_tokens: int = 1000
    temperature: float = 0.7
    top_p: float = 0.8
    top_k: int = 40
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION


class DispatchConfig(BaseModel):
    """Rate limiting and retry for outbound AI requests."""
    min_interval_seconds: float = 10.0  # Minimum gap between two dispatches
    max_attempts: int = 3
    backoff_base_seconds: float = 1.0  # Delay after attempt n is base * 2**n
    max_queue_size: int = 0  # 0 = unbounded


class ContextConfig(BaseModel):
    """Conversation context retention."""
    keep_turns: int = 8  # Turns kept before appending a new exchange


class StorageConfig(BaseModel):
    """Persistent key-value storage."""
    path: str = "~/.replybot/data.json"
    rules_key: str = "auto_reply_rules"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: str | None = None  # Optional log file, rotated at 10 MB
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for replybot."""
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def storage_path(self) -> Path:
        """Get expanded storage path."""
        return Path(self.storage.path).expanduser()

    class Config:
        env_prefix = "REPLYBOT_"
        env_nested_delimiter = "__"
