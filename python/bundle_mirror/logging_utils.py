import logging
import traceback
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

# Loggers of the kubernetes client stack, kept at WARNING unless the run is in debug
NOISY_LOGGERS = ("urllib3", "kubernetes")


def setup_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """Configure root logging for a mirror run.

    The first call installs a stream handler. Later calls only change the
    level and, when fmt is given, the format, so a --debug run can raise the
    verbosity after modules have already created their loggers.
    """
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        if fmt:
            for handler in root.handlers:
                handler.setFormatter(logging.Formatter(fmt))
    else:
        logging.basicConfig(level=level, format=fmt or DEFAULT_FORMAT)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a named logger, configuring logging on first use."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name) if name else logging.getLogger(__name__)


def log_exception(logger: logging.Logger, message: str = "An error occurred", exc_info: Exception = None) -> None:
    """Log an unexpected error with its full traceback.

    Args:
        logger: Logger instance to use
        message: Custom error message to log before the traceback
        exc_info: Exception instance (if None, uses current exception context)
    """
    logger.error(message)
    if exc_info is not None:
        logger.error(f"{type(exc_info).__name__}: {exc_info}")
    logger.error(traceback.format_exc().rstrip())
