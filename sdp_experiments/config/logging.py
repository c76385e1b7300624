"""Configuration and setup for logging in experiments."""

import sys

from loguru import logger

from sdp_experiments.config.settings import LoggingSettings

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[experiment]}</cyan> | {message}"
)


def configure_logging(settings: LoggingSettings) -> None:
    """Replace the default loguru sink with the configured stderr sink.

    Records carry the `experiment` bound by the engine; records logged outside
    an experiment show `-`.

    Args:
        settings: The logging settings.
    """
    logger.remove()  # Remove default handler
    logger.configure(extra={"experiment": "-"})

    if settings.serialize:
        logger.add(
            sys.stderr,
            serialize=True,
            level=settings.level,
            format="{message}",
            backtrace=True,
            diagnose=settings.debug,  # Include variable values only in debug mode
        )
        return

    logger.add(
        sys.stderr,
        level=settings.level,
        format=_TEXT_FORMAT,
        backtrace=True,
        diagnose=settings.debug,
    )
