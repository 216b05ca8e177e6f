"""
Canned answers for trivial messages.

Greetings and small talk are answered from fixed tables so they never spend
a rate-limited backend call.
"""

# Normalized phrase -> answer
DEFAULT_PHRASES: dict[str, str] = {
    "how are you": "I'm doing great, thanks for asking! How about you?",
    "how are you doing": "I'm doing great, thanks for asking! How about you?",
    "what's up": "Not much, just here and ready to chat. What's up with you?",
    "whats up": "Not much, just here and ready to chat. What's up with you?",
    "good morning": "Good morning! Hope you have a great day ahead.",
    "good afternoon": "Good afternoon! How's your day going?",
    "good evening": "Good evening! How was your day?",
    "good night": "Good night! Sleep well.",
    "who are you": "Just someone here to help out. What can I do for you?",
    "what is your name": "You can just call me your friendly helper. What's on your mind?",
    "what's your name": "You can just call me your friendly helper. What's on your mind?",
    "thank you": "You're welcome! Anytime.",
    "thank you so much": "You're very welcome! Happy to help.",
    "see you later": "See you later! Take care.",
    "nice to meet you": "Nice to meet you too!",
}

# Single-word literals with their own answers
DEFAULT_WORDS: dict[str, str] = {
    "hi": "Hi there! How can I help you today?",
    "hello": "Hello! How can I help you today?",
    "hey": "Hey! What's up?",
    "yo": "Yo! What's going on?",
    "thanks": "You're welcome!",
    "thx": "You're welcome!",
    "ty": "You're welcome!",
    "bye": "Bye! Talk to you soon.",
    "ok": "👍",
    "okay": "👍",
}

# Extra characters tolerated around a phrase in a partial match
PARTIAL_SLACK = 5


def normalize(text: str) -> str:
    return text.strip().casefold()


class CannedResponseFilter:
    """
    Three-tier lookup, first hit wins:

    1. exact phrase lookup
    2. single-word literals
    3. partial phrase match, only when the input is at most a few characters
       longer than the phrase, so long unrelated sentences don't trigger it
    """

    def __init__(
        self,
        phrases: dict[str, str] | None = None,
        words: dict[str, str] | None = None,
        partial_slack: int = PARTIAL_SLACK,
    ):
        source_phrases = DEFAULT_PHRASES if phrases is None else phrases
        source_words = DEFAULT_WORDS if words is None else words
        self.phrases = {normalize(k): v for k, v in source_phrases.items()}
        self.words = {normalize(k): v for k, v in source_words.items()}
        self.partial_slack = partial_slack

    def try_canned(self, text: str) -> str | None:
        """Return a canned answer for ``text``, or None."""
        normalized = normalize(text)
        if not normalized:
            return None

        answer = self.phrases.get(normalized)
        if answer is not None:
            return answer

        answer = self.words.get(normalized)
        if answer is not None:
            return answer

        for key, answer in self.phrases.items():
            if key in normalized and len(normalized) <= len(key) + self.partial_slack:
                return answer

        return None
