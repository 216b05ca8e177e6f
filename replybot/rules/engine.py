"""
Auto-reply engine.

Applicable rules are tried in creation order and the FIRST match wins. There
is no "best match" scoring: to make a rule win, create it earlier or scope it
more narrowly.
"""

from dataclasses import dataclass

from loguru import logger

from replybot.rules.matcher import PatternMatcher
from replybot.rules.models import MessageContext
from replybot.rules.store import RuleStore
from replybot.rules.templater import ResponseTemplater


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one message against the rule set."""
    matched: bool
    response: str | None = None
    rule_id: str | None = None


NO_MATCH = MatchResult(matched=False)


class AutoReplyEngine:
    """Matches inbound messages against stored auto-reply rules."""

    def __init__(
        self,
        store: RuleStore,
        matcher: PatternMatcher | None = None,
        templater: ResponseTemplater | None = None,
    ):
        self.store = store
        self.matcher = matcher if matcher is not None else PatternMatcher()
        self.templater = templater if templater is not None else ResponseTemplater()

    def match(self, text: str, ctx: MessageContext, record_hit: bool = True) -> MatchResult:
        """
        Find the auto-reply for a message.

        Args:
            text: Message text.
            ctx: Where the message came from.
            record_hit: Count the hit on the matched rule. Pass False to test
                rules without touching their counters.

        Returns:
            MatchResult; never raises.
        """
        if not text or not text.strip():
            return NO_MATCH

        try:
            rules = [r for r in self.store.list() if r.applies_to(ctx)]

            for rule in rules:
                if not self.matcher.matches(rule, text):
                    continue

                if record_hit:
                    self.store.record_hit(rule.id)

                response = self.templater.render(rule.response, sender=ctx.sender, message=text)
                logger.debug(f"Auto-reply rule {rule.id} matched in {ctx.chat_id}")
                return MatchResult(matched=True, response=response, rule_id=rule.id)

        except Exception as e:
            logger.error(f"Auto-reply matching failed for {ctx.chat_id}: {e}")
            return NO_MATCH

        return NO_MATCH
