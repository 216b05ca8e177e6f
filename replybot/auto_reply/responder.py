"""AI replies: canned answers first, then the dispatch queue."""

from loguru import logger

from replybot.auto_reply.canned import CannedResponseFilter
from replybot.auto_reply.context import ConversationContextStore, context_key
from replybot.auto_reply.queue import DispatchQueue
from replybot.errors import AIError
from replybot.result import Err, Ok, Result
from replybot.rules.models import MessageContext


class ResponseGenerator:
    """
    Produces the AI reply for a message that no auto-reply rule handled.

    Flow:
    1. Canned answer -> returned at once, no context update, no queueing
    2. Load the chat's conversation context
    3. Submit to the dispatch queue
    4. On success record the exchange in the context
    5. On failure return the error, context untouched
    """

    def __init__(
        self,
        queue: DispatchQueue,
        contexts: ConversationContextStore | None = None,
        canned: CannedResponseFilter | None = None,
    ):
        self.queue = queue
        self.contexts = contexts if contexts is not None else ConversationContextStore()
        self.canned = canned if canned is not None else CannedResponseFilter()

    async def respond(self, text: str, ctx: MessageContext) -> Result[str, AIError]:
        canned = self.canned.try_canned(text)
        if canned is not None:
            logger.debug(f"Canned reply for {ctx.chat_id}")
            return Ok(canned)

        key = context_key(ctx.chat_id, ctx.sender, ctx.is_group)
        history = self.contexts.get(key)

        result = await self.queue.submit(text, history)

        if isinstance(result, Err):
            logger.warning(f"AI reply failed for {key}: {result.error}")
            return result

        self.contexts.append(key, text, result.value)
        return result
