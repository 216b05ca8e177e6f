"""
Error taxonomy for replybot.

Rule errors are returned inside ``Err`` by the rule store. AI errors are
returned by the retry controller and the dispatch queue once retries are
exhausted; ``describe_failure`` turns them into the text sent to the user.
"""


class ReplyBotError(Exception):
    """Base class for all replybot errors."""


class ValidationError(ReplyBotError):
    """A rule (or generated rule) is missing required data."""


class NotFoundError(ReplyBotError):
    """No rule exists with the requested id."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule not found: {rule_id}")
        self.rule_id = rule_id


class InvalidPatternError(ReplyBotError):
    """A rule pattern failed to compile. Never surfaced past the matcher."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class AIError(ReplyBotError):
    """Base class for generation backend failures."""


class RateLimitedError(AIError):
    """The backend signaled quota exhaustion (HTTP 429)."""
    status_code = 429


class BackendError(AIError):
    """Any other backend failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ExhaustedRetriesError(AIError):
    """All attempts failed. Carries the error of the last attempt."""

    def __init__(self, last_error: Exception, attempts: int):
        super().__init__(f"AI request failed after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts

    @property
    def rate_limited(self) -> bool:
        return isinstance(self.last_error, RateLimitedError)


RATE_LIMITED_MESSAGE = (
    "I'm currently handling too many requests. "
    "Please try again in a minute when I'm less busy."
)
CONNECTION_MESSAGE = (
    "I'm having trouble connecting to my AI service right now. "
    "Please try a simpler question or try again later."
)
GENERIC_MESSAGE = (
    "Sorry, I encountered an error while processing your message. "
    "Please try again later."
)


def describe_failure(error: Exception) -> str:
    """Map a failure to the apology shown to the end user."""
    if isinstance(error, RateLimitedError):
        return RATE_LIMITED_MESSAGE
    if isinstance(error, ExhaustedRetriesError):
        return RATE_LIMITED_MESSAGE if error.rate_limited else CONNECTION_MESSAGE
    return GENERIC_MESSAGE
