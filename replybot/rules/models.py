"""Auto-reply rule records and the per-message context they are matched in."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RuleScope(str, Enum):
    """Where a rule is eligible to fire."""
    GLOBAL = "global"
    GROUP = "group"      # One specific group, identified by group_id
    PRIVATE = "private"  # Any one-to-one chat


class MatchMode(str, Enum):
    """How a rule pattern is compared with message text."""
    WILDCARD = "wildcard"  # * and ? globs, anchored
    REGEX = "regex"
    EXACT = "exact"


def new_rule_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class AutoReplyRule:
    """A stored auto-reply rule."""
    pattern: str
    response: str
    scope: RuleScope = RuleScope.GLOBAL
    group_id: str | None = None
    match_mode: MatchMode = MatchMode.WILDCARD
    case_sensitive: bool = False
    enabled: bool = True
    hits: int = 0
    id: str = field(default_factory=new_rule_id)
    created: datetime = field(default_factory=datetime.now)
    created_by: str | None = None

    def applies_to(self, ctx: "MessageContext") -> bool:
        """Check whether this rule is eligible for a message context."""
        if not self.enabled:
            return False
        if self.scope == RuleScope.GLOBAL:
            return True
        if self.scope == RuleScope.GROUP:
            return ctx.is_group and self.group_id == ctx.group_id
        return not ctx.is_group

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "pattern": self.pattern,
            "response": self.response,
            "scope": self.scope.value,
            "group_id": self.group_id,
            "match_mode": self.match_mode.value,
            "case_sensitive": self.case_sensitive,
            "enabled": self.enabled,
            "hits": self.hits,
            "created": self.created.isoformat(),
            "created_by": self.created_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutoReplyRule":
        """
        Create from dictionary.

        Also accepts records written by the older bot: boolean ``regex`` /
        ``exact`` flags, camelCase keys, integer ids and millisecond
        timestamps.
        """
        mode = data.get("match_mode")
        if mode is None:
            if data.get("regex"):
                mode = MatchMode.REGEX
            elif data.get("exact"):
                mode = MatchMode.EXACT
            else:
                mode = MatchMode.WILDCARD

        created = data.get("created")
        if isinstance(created, (int, float)):
            created = datetime.fromtimestamp(created / 1000)
        elif isinstance(created, str):
            created = datetime.fromisoformat(created)
        else:
            created = datetime.now()

        scope = RuleScope(data.get("scope") or RuleScope.GLOBAL)
        group_id = data.get("group_id", data.get("groupId"))

        return cls(
            id=str(data["id"]) if data.get("id") is not None else new_rule_id(),
            pattern=data["pattern"],
            response=data["response"],
            scope=scope,
            group_id=group_id if scope == RuleScope.GROUP else None,
            match_mode=MatchMode(mode),
            case_sensitive=bool(data.get("case_sensitive", data.get("caseSensitive", False))),
            enabled=bool(data.get("enabled", True)),
            hits=int(data.get("hits", 0)),
            created=created,
            created_by=data.get("created_by", data.get("createdBy")),
        )


@dataclass(frozen=True)
class MessageContext:
    """Where an inbound message came from."""
    chat_id: str
    sender: str
    is_group: bool = False
    group_id: str | None = None

    def __post_init__(self) -> None:
        # Group messages are scoped by the chat they arrive in unless told otherwise
        if self.is_group and self.group_id is None:
            object.__setattr__(self, "group_id", self.chat_id)
