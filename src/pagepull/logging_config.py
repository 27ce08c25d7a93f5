import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty below WARNING
NOISY_LOGGERS = ("readability", "asyncio")


def resolve_level(verbose: bool = False, quiet: bool = False) -> str:
    """Map CLI verbosity flags to a level name (--quiet wins)."""
    if quiet:
        return "ERROR"
    if verbose:
        return "DEBUG"
    return "INFO"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the ``pagepull`` logger.

    Records go to stderr so stdout only carries the command output. Unless
    running at DEBUG, third-party loggers in NOISY_LOGGERS are held at
    WARNING.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also write records to this file
        format_string: Custom record format
        force: Replace existing handlers

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    logger = logging.getLogger("pagepull")
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        logger.handlers.clear()

        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
        if log_file:
            handlers.append(logging.FileHandler(log_file))

        for handler in handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    # Avoid duplicate records through the root logger
    logger.propagate = False

    third_party_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return logger
