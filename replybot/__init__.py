"""
replybot - auto-reply rules and rate-limited AI replies for chat bots.
"""

__version__ = "0.1.0"
__logo__ = "💬"
