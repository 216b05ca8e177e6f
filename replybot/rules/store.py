"""
Auto-reply rule storage.

Rules live as one list under a single key of a key-value store. Every
mutation rewrites that list immediately, and reads always go back to the
store, so ``list`` reflects the last committed state.
"""

from typing import Any

from loguru import logger

from replybot.errors import NotFoundError, ValidationError
from replybot.result import Err, Ok, Result
from replybot.rules.models import AutoReplyRule, MatchMode, RuleScope
from replybot.storage.kv import KeyValueStore

DEFAULT_RULES_KEY = "auto_reply_rules"


class RuleStore:
    """CRUD access to auto-reply rules, in creation order."""

    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_RULES_KEY):
        self._kv = kv
        self._key = key

    def load_all(self) -> list[AutoReplyRule]:
        """Load every stored rule, skipping records that cannot be parsed."""
        raw: list[dict[str, Any]] = self._kv.get(self._key) or []
        rules = []
        for item in raw:
            try:
                rules.append(AutoReplyRule.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed auto-reply rule {item!r}: {e}")
        return rules

    def save_all(self, rules: list[AutoReplyRule]) -> None:
        self._kv.set(self._key, [rule.to_dict() for rule in rules])

    def create(
        self,
        pattern: str,
        response: str,
        scope: RuleScope | str = RuleScope.GLOBAL,
        group_id: str | None = None,
        match_mode: MatchMode | str = MatchMode.WILDCARD,
        case_sensitive: bool = False,
        created_by: str | None = None,
    ) -> Result[AutoReplyRule, ValidationError]:
        """
        Validate and store a new rule.

        Args:
            pattern: Text pattern to match.
            response: Response template.
            scope: Rule scope (global, group, private).
            group_id: Group the rule belongs to; required for group scope.
            match_mode: wildcard, regex or exact.
            case_sensitive: Whether matching respects case.
            created_by: Optional creator id for auditing.

        Returns:
            Ok with the stored rule, or Err(ValidationError).
        """
        if not pattern or not pattern.strip():
            return Err(ValidationError("Pattern is required."))
        if not response or not response.strip():
            return Err(ValidationError("Response is required."))

        try:
            scope = RuleScope(scope)
        except ValueError:
            return Err(ValidationError(f"Unknown scope: {scope}"))
        try:
            match_mode = MatchMode(match_mode)
        except ValueError:
            return Err(ValidationError(f"Unknown match mode: {match_mode}"))

        if scope == RuleScope.GROUP and not group_id:
            return Err(ValidationError("Group rules require a group id."))

        rule = AutoReplyRule(
            pattern=pattern,
            response=response,
            scope=scope,
            group_id=group_id if scope == RuleScope.GROUP else None,
            match_mode=match_mode,
            case_sensitive=case_sensitive,
            created_by=created_by,
        )

        rules = self.load_all()
        rules.append(rule)
        self.save_all(rules)

        logger.info(f"Created auto-reply rule {rule.id} ({rule.scope.value}, {rule.match_mode.value})")
        return Ok(rule)

    def delete(self, rule_id: str) -> Result[None, NotFoundError]:
        """Remove a rule by id."""
        rules = self.load_all()
        remaining = [r for r in rules if r.id != str(rule_id)]
        if len(remaining) == len(rules):
            return Err(NotFoundError(str(rule_id)))

        self.save_all(remaining)
        logger.info(f"Deleted auto-reply rule {rule_id}")
        return Ok(None)

    def toggle(self, rule_id: str, enabled: bool) -> Result[AutoReplyRule, NotFoundError]:
        """Enable or disable a rule."""
        rules = self.load_all()
        for rule in rules:
            if rule.id == str(rule_id):
                rule.enabled = enabled
                self.save_all(rules)
                logger.info(f"Auto-reply rule {rule_id} {'enabled' if enabled else 'disabled'}")
                return Ok(rule)
        return Err(NotFoundError(str(rule_id)))

    def list(
        self,
        scope: RuleScope | str | None = None,
        group_id: str | None = None,
    ) -> list[AutoReplyRule]:
        """List rules matching both filters when given, in creation order."""
        rules = self.load_all()
        if scope:
            rules = [r for r in rules if r.scope == RuleScope(scope)]
        if group_id:
            rules = [r for r in rules if r.group_id == group_id]
        return rules

    def get(self, rule_id: str) -> AutoReplyRule | None:
        for rule in self.load_all():
            if rule.id == str(rule_id):
                return rule
        return None

    def record_hit(self, rule_id: str) -> int | None:
        """Increment a rule's hit counter and persist. Returns the new count."""
        rules = self.load_all()
        for rule in rules:
            if rule.id == str(rule_id):
                rule.hits += 1
                self.save_all(rules)
                return rule.hits
        return None
