"""
Reply dispatcher for replybot.

Routes one inbound message to a reply:
1. Auto-reply rules
2. AI response (canned or generated)
3. A user-facing apology when the AI request failed
"""

from typing import Any, Awaitable, Callable

from loguru import logger

from replybot.auto_reply.responder import ResponseGenerator
from replybot.errors import describe_failure
from replybot.result import Err
from replybot.rules.engine import AutoReplyEngine
from replybot.rules.models import MessageContext

# Async function(chat_id, text)
ResponseSender = Callable[[str, str], Awaitable[None]]


class ReplyDispatcher:
    """Glue between the transport layer and the reply engines."""

    def __init__(self, engine: AutoReplyEngine, generator: ResponseGenerator):
        self.engine = engine
        self.generator = generator

        # Stats
        self._auto_replies = 0
        self._ai_replies = 0
        self._failures = 0

    async def handle(
        self,
        text: str,
        ctx: MessageContext,
        send: ResponseSender | None = None,
    ) -> str | None:
        """
        Produce (and optionally send) the reply for one message.

        Args:
            text: Message text.
            ctx: Message origin.
            send: Optional async sender(chat_id, text).

        Returns:
            The reply text, or None for blank messages.
        """
        if not text or not text.strip():
            return None

        match = self.engine.match(text, ctx)
        if match.matched:
            self._auto_replies += 1
            reply = match.response
        else:
            result = await self.generator.respond(text, ctx)
            if isinstance(result, Err):
                self._failures += 1
                reply = describe_failure(result.error)
            else:
                self._ai_replies += 1
                reply = result.value

        if send is not None and reply:
            try:
                await send(ctx.chat_id, reply)
            except Exception as e:
                logger.error(f"Failed to send reply to {ctx.chat_id}: {e}")
                raise

        return reply

    def get_stats(self) -> dict[str, Any]:
        """Get dispatcher statistics."""
        return {
            "auto_replies": self._auto_replies,
            "ai_replies": self._ai_replies,
            "failures": self._failures,
            "queue_stats": self.generator.queue.get_stats(),
        }
