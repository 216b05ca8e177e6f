"""Test doubles shared across test modules."""

from replybot.errors import BackendError, RateLimitedError
from replybot.providers.base import GenerationBackend


class FakeBackend(GenerationBackend):
    """
    Scripted generation backend.

    Each call pops the next item from ``script``: strings are returned,
    exceptions are raised. Once the script runs out ``default`` is returned.
    """

    def __init__(self, script=None, default="Sure thing."):
        self.script = list(script or [])
        self.default = default
        self.calls = []

    async def generate(self, prompt, history, config, system_instruction=None):
        self.calls.append({
            "prompt": prompt,
            "history": list(history),
            "config": config,
            "system_instruction": system_instruction,
        })
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return self.default


class FakeClock:
    """Manual clock; advanced by RecordingSleep."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


class RecordingSleep:
    """Records requested delays and advances the fake clock instead of waiting."""

    def __init__(self, clock=None):
        self.clock = clock
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.now += delay


def rate_limited():
    return RateLimitedError("429 Too Many Requests")


def backend_down():
    return BackendError("connection reset", status_code=503)
