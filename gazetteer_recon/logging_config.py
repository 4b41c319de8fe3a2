"""
Console logging for the reconciliation service.

Readable, optionally coloured output on stderr for local runs and for the
uvicorn process started by ``gazetteer_recon.main.run``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

#third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("urllib3", "asyncio", "httpx", "multipart", "python_multipart")


class LogColours:
    RESET = "\033[0m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    GRAY = "\033[90m"


class ColouredFormatter(logging.Formatter):
    """Formatter that colours the level name only."""

    COLOURS = {
        logging.DEBUG: LogColours.GRAY,
        logging.INFO: LogColours.BLUE,
        logging.WARNING: LogColours.YELLOW,
        logging.ERROR: LogColours.RED,
        logging.CRITICAL: LogColours.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelno)
        if colour is None:
            return super().format(record)

        #the record is shared with other handlers, restore it afterwards
        original = record.levelname
        record.levelname = f"{colour}{original}{LogColours.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(level: str = "INFO", use_colours: bool = True) -> None:
    """
    Configure the root logger with a single stderr handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            unknown names fall back to INFO
        use_colours: Colour the level names (disable when piping to a file)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    formatter_cls = ColouredFormatter if use_colours else logging.Formatter
    handler.setFormatter(formatter_cls(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    #force=True replaces handlers installed earlier (uvicorn, pytest, etc.)
    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Loaded 20 entities")
    """
    return logging.getLogger(name)
