"""
Pattern matching for auto-reply rules.

Each rule is evaluated in exactly one mode. Bad operator-entered patterns
never raise: a regex that fails to compile is a non-match, and a wildcard
that fails to compile falls back to substring containment.
"""

import re

from loguru import logger

from replybot.errors import InvalidPatternError
from replybot.result import Err, Ok, Result
from replybot.rules.models import AutoReplyRule, MatchMode


def wildcard_to_regex(pattern: str) -> str:
    """
    Translate ``*`` and ``?`` into ``.*`` and ``.`` and anchor the result.

    Other characters pass through untouched, so regex syntax inside a
    wildcard keeps its meaning and a pattern that does not compile falls
    back to substring matching. ``\\Z`` anchors at the true end of the text,
    so a trailing newline is not ignored.
    """
    return "^" + pattern.replace("*", ".*").replace("?", ".") + r"\Z"


def compile_pattern(rule: AutoReplyRule) -> Result[re.Pattern, InvalidPatternError]:
    """Compile the regex for a regex or wildcard rule."""
    flags = 0 if rule.case_sensitive else re.IGNORECASE
    if rule.match_mode == MatchMode.WILDCARD:
        source = wildcard_to_regex(rule.pattern)
        flags |= re.DOTALL
    else:
        source = rule.pattern

    try:
        return Ok(re.compile(source, flags))
    except (re.error, RecursionError, OverflowError) as e:
        return Err(InvalidPatternError(rule.pattern, str(e)))


class PatternMatcher:
    """Decides whether message text satisfies a rule."""

    def __init__(self):
        # (mode, pattern, case_sensitive) -> compiled pattern or compile error
        self._cache: dict[tuple[str, str, bool], Result[re.Pattern, InvalidPatternError]] = {}

    def _compiled(self, rule: AutoReplyRule) -> Result[re.Pattern, InvalidPatternError]:
        key = (rule.match_mode.value, rule.pattern, rule.case_sensitive)
        if key not in self._cache:
            self._cache[key] = compile_pattern(rule)
        return self._cache[key]

    def matches(self, rule: AutoReplyRule, text: str) -> bool:
        """Return True if ``text`` satisfies ``rule``. Never raises."""
        if rule.match_mode == MatchMode.EXACT:
            if rule.case_sensitive:
                return text == rule.pattern
            return text.casefold() == rule.pattern.casefold()

        compiled = self._compiled(rule)

        if rule.match_mode == MatchMode.REGEX:
            if isinstance(compiled, Err):
                logger.warning(f"Rule {rule.id}: {compiled.error}")
                return False
            return compiled.value.search(text) is not None

        if isinstance(compiled, Err):
            logger.warning(f"Rule {rule.id}: {compiled.error}, using substring match")
            if rule.case_sensitive:
                return rule.pattern in text
            return rule.pattern.casefold() in text.casefold()
        return compiled.value.search(text) is not None

    def clear_cache(self) -> None:
        self._cache.clear()
