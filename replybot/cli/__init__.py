"""CLI module for replybot."""
