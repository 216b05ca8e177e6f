"""
Auto-reply rules for replybot.

Provides:
- Rule storage on a key-value store
- Wildcard / regex / exact matching
- Response templating
- AI-assisted rule generation
"""

from replybot.rules.models import (
    AutoReplyRule,
    MatchMode,
    MessageContext,
    RuleScope,
)
from replybot.rules.store import RuleStore
from replybot.rules.matcher import PatternMatcher, compile_pattern, wildcard_to_regex
from replybot.rules.templater import ResponseTemplater, strip_sender
from replybot.rules.engine import AutoReplyEngine, MatchResult
from replybot.rules.generator import RuleExample, RuleGenerator

__all__ = [
    # Models
    "AutoReplyRule",
    "MatchMode",
    "MessageContext",
    "RuleScope",
    # Store
    "RuleStore",
    # Matching
    "PatternMatcher",
    "compile_pattern",
    "wildcard_to_regex",
    # Templating
    "ResponseTemplater",
    "strip_sender",
    # Engine
    "AutoReplyEngine",
    "MatchResult",
    # Generation
    "RuleExample",
    "RuleGenerator",
]
