"""
Log sinks and console logging setup

The parser reports every non-fatal problem through a *log sink*: any callable
taking (message, severity, line). The default sink forwards to the standard
logging module, so hosts that already configure logging get isokit warnings
for free; hosts with their own console (an editor, a game) pass their own
callable instead.
"""

import logging
from typing import Optional, Protocol

from .errors import Severity


class LogSink(Protocol):
    def __call__(self, message: str, severity: Severity,
                 line: Optional[int] = None) -> None:
        ...


class LoggingSink:
    """
    Log sink writing to a `logging.Logger`.

    Parameters:
    -----------
    logger : logging.Logger or str
        Logger (or logger name) receiving the records
    """

    def __init__(self, logger="isokit.tmx"):
        if isinstance(logger, str):
            logger = logging.getLogger(logger)
        self.logger = logger

    def __call__(self, message: str, severity: Severity,
                 line: Optional[int] = None) -> None:
        level = logging.ERROR if severity is Severity.ERROR else logging.WARNING
        if line is not None:
            self.logger.log(level, "line %d: %s", line, message)
        else:
            self.logger.log(level, "%s", message)


def setup_logging(level=logging.INFO, color_logs: bool = False):
    """Install a single console handler on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(RichLogFormatter(use_color=color_logs))
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    logging.getLogger("PIL").setLevel(logging.WARNING)


class RichLogFormatter(logging.Formatter):
    """
    Console formatter: level tag, logger topic, message.

    Args:
        use_color (bool): If True, ANSI colour codes are used.
    """

    COLORS = {
        logging.DEBUG: "\033[38;5;252m",  # Light Grey
        logging.INFO: "\033[38;5;111m",  # Pastel Blue
        logging.WARNING: "\033[38;5;229m",  # Pale Yellow
        logging.ERROR: "\033[38;5;210m",  # Soft Red
        logging.CRITICAL: "\033[38;5;217m",  # Light Magenta
    }
    BOLD = "\033[1m"
    RESET = "\033[0m"

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        topic = record.name.split(".", 1)[-1] if "." in record.name else record.name
        message = record.getMessage()
        tag = f"{record.levelname:<7}"
        if self.use_color:
            color = self.COLORS.get(record.levelno, "")
            tag = f"{color}{self.BOLD}{tag}{self.RESET}"
            message = f"{color}{message}{self.RESET}"
        text = f"{tag} [{topic}] {message}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text
