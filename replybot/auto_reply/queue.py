"""
Dispatch queue for replybot AI requests.

Provides:
- Global FIFO ordering of backend calls
- At most one call in flight, system-wide
- Rate limiting and retry for every request

A request that keeps failing holds its slot for its whole retry schedule
and everything behind it waits.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from replybot.auto_reply.rate_limit import RateLimiter
from replybot.auto_reply.retry import RetryController
from replybot.errors import AIError
from replybot.providers.base import ConversationTurn
from replybot.result import Result


@dataclass
class QueueConfig:
    """Configuration for the dispatch queue."""
    max_queue_size: int = 0  # 0 = unbounded


@dataclass
class QueuedRequest:
    """An AI request waiting for its turn."""
    message: str
    context: list[ConversationTurn]
    future: asyncio.Future
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    enqueued_at: float = field(default_factory=time.time)


class DispatchQueue:
    """
    Serializes all AI calls through one worker task.

    The worker loops: take the head request, wait for the rate limiter, run
    the retry controller, settle the request's future, repeat.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        retry: RetryController,
        config: QueueConfig | None = None,
    ):
        self.limiter = limiter
        self.retry = retry
        self.config = config or QueueConfig()

        self._queue: asyncio.Queue[QueuedRequest] | None = None
        self._worker: asyncio.Task | None = None
        self._in_flight = False
        self._closed = False

        # Stats
        self._total_submitted = 0
        self._total_succeeded = 0
        self._total_failed = 0

    def _get_queue(self) -> asyncio.Queue:
        # Created lazily so the queue binds to the running event loop
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.config.max_queue_size)
        return self._queue

    def start(self) -> None:
        """Start the worker task if it is not running."""
        if self._closed:
            raise RuntimeError("Dispatch queue is closed")
        if self._worker is None or self._worker.done():
            self._get_queue()
            self._worker = asyncio.create_task(self._run(), name="replybot-dispatch")
            logger.debug("Dispatch worker started")

    async def submit(
        self,
        message: str,
        context: list[ConversationTurn] | None = None,
    ) -> Result[str, AIError]:
        """
        Enqueue a request and wait for its result.

        Args:
            message: The user message.
            context: Conversation history to send with the first attempt.

        Returns:
            Ok(reply) or Err(ExhaustedRetriesError).
        """
        if self._closed:
            raise RuntimeError("Dispatch queue is closed")

        loop = asyncio.get_running_loop()
        request = QueuedRequest(
            message=message,
            context=list(context or []),
            future=loop.create_future(),
        )
        await self._get_queue().put(request)
        self._total_submitted += 1
        logger.debug(f"Queued AI request {request.id} (queue size {self.size})")

        self.start()
        return await request.future

    async def _run(self) -> None:
        """Worker loop. Exactly one instance runs per queue."""
        queue = self._get_queue()
        while True:
            request = await queue.get()
            self._in_flight = True
            try:
                await self.limiter.acquire()
                waited = time.time() - request.enqueued_at
                logger.debug(f"Dispatching AI request {request.id} after {waited:.1f}s in queue")

                result = await self.retry.call_with_retry(request.message, request.context)

                if result.ok:
                    self._total_succeeded += 1
                else:
                    self._total_failed += 1
                if not request.future.done():
                    request.future.set_result(result)

            except asyncio.CancelledError:
                if not request.future.done():
                    request.future.cancel()
                raise
            except Exception as e:
                logger.exception(f"Dispatch worker fault on request {request.id}: {e}")
                self._total_failed += 1
                if not request.future.done():
                    request.future.set_exception(e)
            finally:
                self._in_flight = False
                queue.task_done()

    async def close(self) -> None:
        """Stop the worker and cancel any request still waiting."""
        self._closed = True
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None

        if self._queue is not None:
            while not self._queue.empty():
                request = self._queue.get_nowait()
                if not request.future.done():
                    request.future.cancel()
                self._queue.task_done()
        logger.debug("Dispatch queue closed")

    @property
    def size(self) -> int:
        """Requests waiting (not counting the one in flight)."""
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def get_stats(self) -> dict[str, Any]:
        """Get queue statistics."""
        return {
            "queue_size": self.size,
            "in_flight": self._in_flight,
            "total_submitted": self._total_submitted,
            "total_succeeded": self._total_succeeded,
            "total_failed": self._total_failed,
            "limiter": self.limiter.get_stats(),
        }
