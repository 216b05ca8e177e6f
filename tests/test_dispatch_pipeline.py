"""
Tests for the AI dispatch pipeline.

Tests:
- Rate limiter spacing
- Retry backoff and strategy fallback
- Response cleaning
- Dispatch queue ordering and serialization
"""

import asyncio

import pytest

from replybot.auto_reply import (
    DispatchQueue,
    RateLimiter,
    RetryController,
    clean_response,
)
from replybot.auto_reply.retry import DIRECT_ANSWER_DIRECTIVE, DEFAULT_SYSTEM_INSTRUCTION
from replybot.errors import BackendError, ExhaustedRetriesError, RateLimitedError
from replybot.providers.base import ConversationTurn
from replybot.result import Err, Ok

from fakes import FakeBackend, FakeClock, RecordingSleep, backend_down, rate_limited


HISTORY = [
    ConversationTurn(role="user", text="my name is Sam"),
    ConversationTurn(role="model", text="Nice to meet you, Sam!"),
]


class TestRateLimiter:
    """Tests for the global minimum interval."""

    @pytest.mark.asyncio
    async def test_first_acquire_is_immediate(self, clock, sleep):
        limiter = RateLimiter(min_interval=10, clock=clock, sleep=sleep)
        await limiter.acquire()

        assert sleep.delays == []
        assert limiter.last_dispatch == clock.now

    @pytest.mark.asyncio
    async def test_second_acquire_waits_remaining_interval(self, clock, sleep):
        limiter = RateLimiter(min_interval=10, clock=clock, sleep=sleep)
        await limiter.acquire()
        first = limiter.last_dispatch

        clock.now += 3
        await limiter.acquire()

        assert sleep.delays == [pytest.approx(7)]
        assert limiter.last_dispatch - first >= 10

    @pytest.mark.asyncio
    async def test_no_wait_after_interval(self, clock, sleep):
        limiter = RateLimiter(min_interval=10, clock=clock, sleep=sleep)
        await limiter.acquire()
        clock.now += 25
        await limiter.acquire()

        assert sleep.delays == []
        assert limiter.get_stats()["total_wait_seconds"] == 0


class TestCleanResponse:
    """Tests for self-introduction stripping."""

    @pytest.mark.parametrize("raw,expected", [
        ("I am an AI assistant. The capital is Paris.", "The capital is Paris."),
        ("Hi! I'm your friendly assistant. sure, here it is", "Sure, here it is"),
        ("As an AI language model, i think so.", "I think so."),
        ("paris is the capital.", "Paris is the capital."),
        ("I am happy to help with that.", "I am happy to help with that."),
        ("My name is Ava.", "My name is Ava."),
    ])
    def test_clean(self, raw, expected):
        assert clean_response(raw) == expected

    def test_only_intro_is_empty(self):
        assert clean_response("I'm an AI assistant.") == ""


class TestRetryController:
    """Tests for retry, backoff and fallback strategies."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self):
        backend = FakeBackend(["hello there"])
        sleep = RecordingSleep()
        retry = RetryController(backend, sleep=sleep)

        result = await retry.call_with_retry("hi?", HISTORY)

        assert result == Ok("Hello there")
        assert sleep.delays == []
        call = backend.calls[0]
        assert call["prompt"] == "hi?"
        assert call["history"] == HISTORY
        assert call["system_instruction"] == DEFAULT_SYSTEM_INSTRUCTION
        assert call["config"].max_output_tokens == 1000
        assert call["config"].top_k == 40

    @pytest.mark.asyncio
    async def test_fallback_after_failures(self):
        backend = FakeBackend([backend_down(), rate_limited(), "third time lucky"])
        sleep = RecordingSleep()
        retry = RetryController(backend, sleep=sleep)

        result = await retry.call_with_retry("what's my name?", HISTORY)

        assert result == Ok("Third time lucky")
        assert sleep.delays == [2.0, 4.0]
        assert len(backend.calls) == 3

        conversational, *stateless = backend.calls
        assert conversational["history"] == HISTORY
        for call in stateless:
            assert call["history"] == []
            assert call["system_instruction"] is None
            assert call["prompt"].startswith(DIRECT_ANSWER_DIRECTIVE)
            assert call["prompt"].endswith("what's my name?")

    @pytest.mark.asyncio
    async def test_exhausted(self):
        backend = FakeBackend([backend_down(), backend_down(), rate_limited()])
        sleep = RecordingSleep()
        retry = RetryController(backend, sleep=sleep)

        result = await retry.call_with_retry("hi?", [])

        assert isinstance(result, Err)
        assert isinstance(result.error, ExhaustedRetriesError)
        assert result.error.attempts == 3
        assert result.error.rate_limited
        # No sleep after the final attempt
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_blank_reply_counts_as_failure(self):
        backend = FakeBackend(["", "   ", "ok then"])
        retry = RetryController(backend, sleep=RecordingSleep())

        result = await retry.call_with_retry("hi?", [])
        assert result == Ok("Ok then")
        assert len(backend.calls) == 3

    @pytest.mark.asyncio
    async def test_name_answer_delivered_first_time(self):
        backend = FakeBackend(default="My name is Ava.")
        sleep = RecordingSleep()
        retry = RetryController(backend, sleep=sleep)

        result = await retry.call_with_retry("what's your name?", [])

        assert result == Ok("My name is Ava.")
        assert len(backend.calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_intro_only_reply_kept(self):
        backend = FakeBackend(["I'm an AI assistant."])
        retry = RetryController(backend, sleep=RecordingSleep())

        result = await retry.call_with_retry("who are you really?", [])

        assert result == Ok("I'm an AI assistant.")
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped(self):
        backend = FakeBackend([ValueError("boom")])
        retry = RetryController(backend, max_attempts=1, sleep=RecordingSleep())

        result = await retry.call_with_retry("hi?", [])

        assert isinstance(result.error.last_error, BackendError)
        assert not result.error.rate_limited

    def test_backoff_delay(self):
        retry = RetryController(FakeBackend(), backoff_base=0.5)
        assert [retry.backoff_delay(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


class SlowBackend(FakeBackend):
    """Backend that records overlap between concurrent calls."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.max_active = 0

    async def generate(self, prompt, history, config, system_instruction=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.active -= 1
        await super().generate(prompt, history, config, system_instruction)
        return f"re: {prompt}"


def make_queue(backend, clock=None, sleep=None):
    clock = clock or FakeClock()
    sleep = sleep or RecordingSleep(clock)
    limiter = RateLimiter(min_interval=10, clock=clock, sleep=sleep)
    retry = RetryController(backend, sleep=sleep)
    return DispatchQueue(limiter, retry)


class TestDispatchQueue:
    """Tests for the single-worker queue."""

    @pytest.mark.asyncio
    async def test_submit_returns_reply(self):
        queue = make_queue(FakeBackend(["hello"]))
        try:
            result = await queue.submit("hi?", HISTORY)
        finally:
            await queue.close()

        assert result == Ok("Hello")
        assert queue.get_stats()["total_succeeded"] == 1

    @pytest.mark.asyncio
    async def test_fifo_and_one_in_flight(self):
        backend = SlowBackend()
        queue = make_queue(backend)
        try:
            results = await asyncio.gather(*(queue.submit(f"m{i}") for i in range(4)))
        finally:
            await queue.close()

        assert [c["prompt"] for c in backend.calls] == ["m0", "m1", "m2", "m3"]
        assert [r.value for r in results] == ["Re: m0", "Re: m1", "Re: m2", "Re: m3"]
        assert backend.max_active == 1

    @pytest.mark.asyncio
    async def test_dispatches_spaced_by_interval(self):
        clock = FakeClock()
        sleep = RecordingSleep(clock)
        backend = FakeBackend()
        queue = make_queue(backend, clock, sleep)
        try:
            await asyncio.gather(queue.submit("a"), queue.submit("b"), queue.submit("c"))
        finally:
            await queue.close()

        assert sleep.delays == [10, 10]

    @pytest.mark.asyncio
    async def test_failure_is_returned_not_raised(self):
        queue = make_queue(FakeBackend([backend_down()] * 3))
        try:
            result = await queue.submit("hi?")
        finally:
            await queue.close()

        assert isinstance(result, Err)
        assert isinstance(result.error, ExhaustedRetriesError)
        assert queue.get_stats()["total_failed"] == 1

    @pytest.mark.asyncio
    async def test_closed_queue_rejects(self):
        queue = make_queue(FakeBackend())
        await queue.close()

        with pytest.raises(RuntimeError):
            await queue.submit("hi?")
