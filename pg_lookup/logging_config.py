"""
Logging configuration for the people group lookup app.

Console output only; API keys must never be passed to a logger.
"""

import logging
import sys

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

#colour codes for console output
class LogColours:
    RESET = "\033[0m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    GRAY = "\033[90m"


class ColouredFormatter(logging.Formatter):
    """Formatter that colours the level name."""

    COLOURS = {
        logging.DEBUG: LogColours.GRAY,
        logging.INFO: LogColours.BLUE,
        logging.WARNING: LogColours.YELLOW,
        logging.ERROR: LogColours.RED,
        logging.CRITICAL: LogColours.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        colour = self.COLOURS.get(record.levelno)
        if colour:
            record.levelname = f"{colour}{levelname}{LogColours.RESET}"

        try:
            return super().format(record)
        finally:
            #the record is shared with other handlers
            record.levelname = levelname


def setup_logging(level: str = "INFO", use_colours: bool = True) -> None:
    """
    Configure the root logger with a single console handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_colours: Whether to colour level names (disable when piping to a file)

    Example:
        >>> setup_logging("DEBUG")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)

    if use_colours:
        formatter = ColouredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    else:
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=log_level,
        handlers=[console_handler],
        force=True  #override existing config (uvicorn, etc.)
    )

    #httpx logs full request urls, which carry the demographic api key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Fetching candidates")
    """
    return logging.getLogger(name)


def init_logging(debug: bool = False) -> None:
    setup_logging(level="DEBUG" if debug else "INFO")
