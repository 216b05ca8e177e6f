"""Bounded per-chat conversation history."""

from replybot.providers.base import ConversationTurn

# Turns kept from the previous context before a new exchange is appended
DEFAULT_KEEP_TURNS = 8


def context_key(chat_id: str, sender: str, is_group: bool) -> str:
    """
    Key a conversation.

    One-to-one chats share one history; in groups every member gets their own.
    """
    if is_group:
        return f"{chat_id}-{sender}"
    return chat_id


class ConversationContextStore:
    """
    In-memory conversation contexts.

    After each append a context holds at most ``keep_turns + 2`` turns,
    oldest first. Nothing is persisted across restarts.
    """

    def __init__(self, keep_turns: int = DEFAULT_KEEP_TURNS):
        self.keep_turns = keep_turns
        self._contexts: dict[str, list[ConversationTurn]] = {}

    def get(self, key: str) -> list[ConversationTurn]:
        """Get a copy of the context for ``key`` (empty if unknown)."""
        return list(self._contexts.get(key, []))

    def append(self, key: str, user_text: str, model_text: str) -> list[ConversationTurn]:
        """Record one exchange, dropping the oldest turns beyond the window."""
        previous = self._contexts.get(key, [])
        kept = previous[-self.keep_turns:] if self.keep_turns > 0 else []
        updated = kept + [
            ConversationTurn(role="user", text=user_text),
            ConversationTurn(role="model", text=model_text),
        ]
        self._contexts[key] = updated
        return list(updated)

    def clear(self, key: str) -> None:
        self._contexts.pop(key, None)

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, key: str) -> bool:
        return key in self._contexts
