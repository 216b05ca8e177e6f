"""Loguru sink setup."""

import sys

from loguru import logger

from replybot.config.schema import LoggingConfig

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Replace loguru's default sink with ours.

    Args:
        config: Logging section of the app config.
        verbose: Force DEBUG on stderr.
    """
    level = "DEBUG" if verbose else config.level

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if config.file:
        logger.add(
            config.file,
            level=config.level,
            rotation=config.rotation,
            retention=config.retention,
            encoding="utf-8",
        )
        logger.debug(f"Logging to {config.file}")
