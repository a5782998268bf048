# infrastructure/logging/log_setup.py
import sys

from loguru import logger

_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <7}</level> | {message}"


def setup_console_logging(level: str = "INFO", colorize: bool = True) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_FORMAT, colorize=colorize)
