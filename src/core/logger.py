"""
Logging setup for the login gatekeeper.

One stdout handler on the root logger, shared by every module logger.
Verification diagnostics go through these loggers; secret material never does.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that would otherwise log every request
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def level_name(debug: bool) -> str:
    """Log level name for the DEBUG setting."""
    return "DEBUG" if debug else "INFO"


def setup_logging(level: str = "INFO") -> int:
    """
    Configure the root logger, replacing any handlers installed before.

    Args:
        level: Logging level name; unknown names fall back to INFO

    Returns:
        The numeric level applied
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return numeric_level


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with ``__name__``."""
    return logging.getLogger(name)
