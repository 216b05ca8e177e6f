"""Utility functions for replybot."""

from replybot.utils.logging import setup_logging

__all__ = ["setup_logging"]
