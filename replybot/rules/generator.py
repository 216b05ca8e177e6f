"""AI-assisted auto-reply rule generation."""

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from replybot.errors import ReplyBotError, ValidationError
from replybot.result import Err, Result
from replybot.rules.models import AutoReplyRule, MatchMode, RuleScope
from replybot.rules.store import RuleStore

if TYPE_CHECKING:
    from replybot.auto_reply.queue import DispatchQueue


_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

PROMPT_TEMPLATE = """Analyze these examples of message patterns and responses:

{examples}

Create a pattern that would match the example messages. The pattern can use:
- * for wildcard matching
- ? for single character matching
- Standard regex syntax if that would be better

Return ONLY a JSON object with these fields:
- pattern: The pattern to match messages
- response: The response template
- regex: true if using regex, false if using wildcards
- exact: true if exact match is needed
- caseSensitive: whether the pattern is case-sensitive

The response can include variables like {{sender}}, {{message}}, {{time}}.
Only return the JSON object, nothing else."""


@dataclass
class RuleExample:
    """One sample message and the reply it should get."""
    message: str
    response: str


def build_prompt(examples: list[RuleExample]) -> str:
    """Format the generation prompt for a list of examples."""
    blocks = [
        f'Example {i}:\nMessage: "{ex.message}"\nResponse: "{ex.response}"'
        for i, ex in enumerate(examples, start=1)
    ]
    return PROMPT_TEMPLATE.format(examples="\n\n".join(blocks))


def parse_rule_json(text: str) -> dict[str, Any] | None:
    """
    Extract the rule object from a model reply.

    Tries the whole reply first, then the outermost {...} block
    (models like to wrap JSON in prose or code fences).
    """
    candidates = [text.strip()]
    found = _JSON_BLOCK.search(text)
    if found:
        candidates.append(found.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _match_mode(data: dict[str, Any]) -> MatchMode:
    if data.get("exact"):
        return MatchMode.EXACT
    if data.get("regex"):
        return MatchMode.REGEX
    return MatchMode.WILDCARD


class RuleGenerator:
    """
    Asks the AI backend to derive an auto-reply rule from examples.

    Requests go through the shared DispatchQueue so they obey the same
    global rate limit as conversational replies.
    """

    def __init__(self, store: RuleStore, queue: "DispatchQueue"):
        self.store = store
        self.queue = queue

    async def generate(
        self,
        examples: list[RuleExample] | list[tuple[str, str]],
        scope: RuleScope | str,
        group_id: str | None = None,
        created_by: str | None = None,
    ) -> Result[AutoReplyRule, ReplyBotError]:
        """
        Generate and store a rule.

        Args:
            examples: At least one message/response pair, as RuleExample or tuple.
            scope: Scope for the new rule.
            group_id: Group id for group-scoped rules.
            created_by: Optional creator id.

        Returns:
            Ok with the stored rule, or Err describing what went wrong.
        """
        if not examples:
            return Err(ValidationError("At least one example message and response is required."))

        examples = [ex if isinstance(ex, RuleExample) else RuleExample(*ex) for ex in examples]

        result = await self.queue.submit(build_prompt(examples))
        if isinstance(result, Err):
            logger.warning(f"Rule generation request failed: {result.error}")
            return result

        data = parse_rule_json(result.value)
        if data is None:
            logger.warning("Rule generation reply contained no JSON object")
            return Err(ValidationError("Failed to parse the generated rule."))

        pattern = data.get("pattern")
        response = data.get("response")
        if not isinstance(pattern, str) or not isinstance(response, str):
            return Err(ValidationError("Generated rule is missing a pattern or response."))

        return self.store.create(
            pattern=pattern,
            response=response,
            scope=scope,
            group_id=group_id,
            match_mode=_match_mode(data),
            case_sensitive=bool(data.get("caseSensitive", data.get("case_sensitive", False))),
            created_by=created_by,
        )
