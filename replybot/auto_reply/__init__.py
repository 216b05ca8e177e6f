"""
AI reply pipeline for replybot.

Provides:
- Canned answers for trivial messages
- Bounded per-chat conversation context
- Global rate limiting
- Retry with stateless fallback
- A single-worker FIFO dispatch queue
"""

from replybot.auto_reply.canned import CannedResponseFilter
from replybot.auto_reply.context import ConversationContextStore, context_key
from replybot.auto_reply.rate_limit import RateLimiter
from replybot.auto_reply.retry import (
    ConversationalStrategy,
    RetryController,
    StatelessStrategy,
    clean_response,
)
from replybot.auto_reply.queue import DispatchQueue, QueueConfig, QueuedRequest
from replybot.auto_reply.responder import ResponseGenerator
from replybot.auto_reply.dispatch import ReplyDispatcher

__all__ = [
    # Canned
    "CannedResponseFilter",
    # Context
    "ConversationContextStore",
    "context_key",
    # Rate limiting / retry
    "RateLimiter",
    "RetryController",
    "ConversationalStrategy",
    "StatelessStrategy",
    "clean_response",
    # Queue
    "DispatchQueue",
    "QueueConfig",
    "QueuedRequest",
    # Responder / dispatch
    "ResponseGenerator",
    "ReplyDispatcher",
]
