import sys

from loguru import logger

from .config import Settings


def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL)
    logger.add(
        settings.absolute_log_file,
        level=settings.LOG_LEVEL,
        rotation="10 MB",
        retention=5,
        enqueue=True,
    )
    logger.debug(f"Logging configured at level {settings.LOG_LEVEL}")
